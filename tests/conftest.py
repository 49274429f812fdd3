# tests/conftest.py

"""Shared pytest fixtures for the deal_tracker tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from deal_tracker.config.settings import Settings


@pytest.fixture(autouse=True)
def mock_sleep() -> Generator[None, None, None]:
    """Patch time.sleep globally so retry backoff runs instantly."""
    with patch("time.sleep"):
        yield


@pytest.fixture(autouse=True)
def isolated_state_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point the default JSON store at a per-test directory."""
    state_dir = tmp_path / "state"
    with patch.object(Settings, "STATE_DIR", state_dir):
        yield state_dir
