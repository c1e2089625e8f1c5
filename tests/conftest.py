"""Shared fixtures for synccron tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fakes import FakeClock


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty temporary directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def local_dir(tmp_path: Path) -> Path:
    """Create the local directory to synchronise."""
    local = tmp_path / "Nextcloud"
    local.mkdir()
    return local


@pytest.fixture
def write_config(tmp_path: Path, local_dir: Path) -> Callable[..., Path]:
    """Return a function writing a config file with the given extra lines."""

    def _write(*extra: str, local: Path | None = None) -> Path:
        config_file = tmp_path / "sync.conf"
        lines = [
            f"local: {local or local_dir}",
            "remote: https://cloud.example.com",
            *extra,
        ]
        config_file.write_text("\n".join(lines) + "\n")
        return config_file

    return _write


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
