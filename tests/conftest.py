from pathlib import Path

import pytest

from settings_registry import SettingsRegistry

TEST_FILES = Path(__file__).parent / "test_files"


@pytest.fixture
def test_files() -> Path:
    return TEST_FILES


@pytest.fixture
def registry() -> SettingsRegistry:
    """A fresh registry with no active environment."""
    return SettingsRegistry()


@pytest.fixture
def write_yaml(tmp_path: Path):
    """Write a YAML document to a temporary file and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        _ = path.write_text(text, encoding="utf-8")
        return path

    return _write
