"""directupload - File transfers through short-lived signed URLs."""

__version__ = "0.1.0"
