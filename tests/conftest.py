"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from checkrep.reporting import disable_diagnostics


@pytest.fixture(autouse=True)
def abort_mode():
    """Every test starts and ends with no diagnostic sink."""
    disable_diagnostics()
    yield
    disable_diagnostics()


@pytest.fixture
def write_file(tmp_path: Path):
    """Write a text file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
