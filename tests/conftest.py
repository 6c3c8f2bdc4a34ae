"""Pytest configuration and shared fixtures."""

import pytest

from freshcut.core.config import settings


@pytest.fixture(autouse=True)
def utc_local_timezone(monkeypatch):
    """Pin calendar-day math to UTC so results do not depend on the host timezone."""
    monkeypatch.setattr(settings, "local_timezone", "UTC")
