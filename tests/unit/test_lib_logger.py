"""Unit tests for logging setup."""

import logging

import pytest

from nak.core import lib_logger
from nak.core.config import NakConfig
from nak.core.lib_logger import get_component_logger, get_logging_manager, setup_logging

pytestmark = pytest.mark.unit


class TestLoggingManager:
    """Test the rotating file log."""

    def test_setup_writes_formatted_session_line(self, test_config):
        setup_logging(test_config)

        get_logging_manager().file_handler.flush()
        content = test_config.log_file.read_text(encoding="utf-8")

        assert "[INFO] NaK v" in content
        assert content.startswith("[")

    def test_rotation_settings_come_from_config(self, temp_dir):
        config = NakConfig(
            config_dir=temp_dir / "config",
            log_file=temp_dir / "nak.log",
            log_max_bytes=1024,
            log_backup_count=2,
        )

        manager = setup_logging(config)

        assert manager.file_handler.maxBytes == 1024
        assert manager.file_handler.backupCount == 2

    @pytest.mark.parametrize("setting,level", [
        ("0", logging.INFO),
        ("1", logging.WARNING),
        ("2", logging.ERROR),
        ("bogus", logging.INFO),
    ])
    def test_level_setting(self, test_config, setting, level):
        manager = setup_logging(test_config, setting)

        assert manager.file_handler.level == level

    def test_set_level_filters_file_output(self, test_config):
        manager = setup_logging(test_config)
        log = get_component_logger("test")

        manager.set_level("2")
        log.warning("hidden warning")
        log.error("visible error")
        manager.file_handler.flush()

        content = test_config.log_file.read_text(encoding="utf-8")
        assert "hidden warning" not in content
        assert "[ERROR] visible error" in content

    def test_debug_overrides_level(self, temp_dir):
        config = NakConfig(config_dir=temp_dir, log_file=temp_dir / "nak.log", debug=True)

        manager = setup_logging(config, "2")

        assert manager.file_handler.level == logging.DEBUG

    def test_setup_replaces_previous_manager(self, test_config):
        first = setup_logging(test_config)
        second = setup_logging(test_config)

        assert first is not second
        assert lib_logger.get_logging_manager() is second
        assert first.file_handler is None
        assert len(logging.getLogger("nak").handlers) == 2

    def test_system_info_reports_tools(self, test_config):
        manager = setup_logging(test_config)

        manager.log_system_info(lambda name: name == "curl")
        manager.file_handler.flush()

        content = test_config.log_file.read_text(encoding="utf-8")
        assert "Tool curl: found" in content
        assert "Tool jq: not found" in content
