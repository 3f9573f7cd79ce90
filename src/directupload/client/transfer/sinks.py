"""Download sinks.

This module provides:
- DirectorySink: Saves downloaded content into a directory with atomic writes
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


class DirectorySink:
    """Save downloads into a directory.

    Content is written to `<name>.tmp` first and renamed over the target, so
    an interrupted write never leaves a partial file under the final name.
    """

    def __init__(self, directory: Path | str, overwrite: bool = True) -> None:
        self._directory = Path(directory)
        self._overwrite = overwrite
        self.saved: list[Path] = []

    def target_for(self, filename: str) -> Path:
        """Resolve the destination of `filename`.

        Raises:
            ValueError: If the name is empty or points outside the directory.
        """
        name = PurePosixPath(filename.replace("\\", "/")).name
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid filename: {filename!r}")
        return self._directory / name

    async def __call__(self, content: bytes, filename: str) -> None:
        target = self.target_for(filename)
        await asyncio.to_thread(self._write, target, content)
        self.saved.append(target)
        logger.info(f"Saved {len(content)} bytes to {target}")

    def _write(self, target: Path, content: bytes) -> None:
        if target.exists() and not self._overwrite:
            raise FileExistsError(f"{target} already exists")

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = target.with_suffix(target.suffix + ".tmp")
        try:
            tmp_path.write_bytes(content)
            tmp_path.replace(target)
        except Exception:
            # Clean up temp file on failure
            if tmp_path.exists():
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise
