"""Shared fixtures for transfer engine tests."""

from __future__ import annotations

import pytest

from tests.client.fixtures import FakeProvider


@pytest.fixture
def provider() -> FakeProvider:
    """Provider issuing URLs on the test bucket."""
    return FakeProvider()
