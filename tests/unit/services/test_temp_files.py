"""Unit tests for the temporary file registry."""

import stat

import pytest

from nak.services.temp_files import TempFileRegistry

pytestmark = pytest.mark.unit


class TestTempFileRegistry:
    """Test creation and cleanup of temporary paths."""

    def test_created_file_is_private(self):
        registry = TempFileRegistry()
        try:
            path = registry.create_file(suffix=".txt")

            assert path.exists()
            assert path.name.startswith("nak.")
            assert path.suffix == ".txt"
            assert stat.S_IMODE(path.stat().st_mode) == 0o600
        finally:
            registry.cleanup()

    def test_cleanup_removes_files_and_directories(self):
        registry = TempFileRegistry()
        file_path = registry.create_file()
        dir_path = registry.create_dir()
        (dir_path / "inner.txt").write_text("data")

        assert registry.cleanup() == 2
        assert not file_path.exists()
        assert not dir_path.exists()
        assert registry.paths == []

    def test_already_removed_paths_are_not_counted(self, temp_dir):
        registry = TempFileRegistry()
        registry.track(temp_dir / "gone")

        assert registry.cleanup() == 0

    def test_cleanup_is_repeatable(self):
        registry = TempFileRegistry()
        registry.create_file()

        assert registry.cleanup() == 1
        assert registry.cleanup() == 0
