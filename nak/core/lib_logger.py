"""Logging configuration for NaK."""

import logging
import logging.handlers
import platform
from typing import Any, Dict, Optional

import psutil
from rich.console import Console
from rich.logging import RichHandler

from nak.version import __version__

from .config import NakConfig

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Config store logging_level values
LOG_LEVELS = {
    "0": logging.INFO,
    "1": logging.WARNING,
    "2": logging.ERROR,
}

REPORTED_TOOLS = ("protontricks", "flatpak", "curl", "jq", "unzip", "wget")


class NakLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds NaK-specific context."""

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any]):
        """Initialize with logger and extra context."""
        super().__init__(logger, extra)

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Process log message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


class LoggingManager:
    """Manage logging configuration for NaK."""

    def __init__(self, config: NakConfig, level_setting: str = "0"):
        """Initialize logging manager.

        Args:
            config: Application configuration carrying the log file location
            level_setting: ``logging_level`` value from the config store
        """
        self.config = config
        self.level_setting = level_setting
        self.console = Console(stderr=True)
        self.file_handler: Optional[logging.handlers.RotatingFileHandler] = None
        self._configured = False

    @property
    def file_level(self) -> int:
        """Resolve the file log level."""
        if self.config.debug:
            return logging.DEBUG
        return LOG_LEVELS.get(str(self.level_setting).strip(), logging.INFO)

    def setup_logging(self) -> None:
        """Set up console and rotating file handlers."""
        if self._configured:
            return

        self.config.log_file.parent.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger("nak")
        root_logger.setLevel(logging.DEBUG)
        root_logger.propagate = False

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

        # Console only shows problems; the menus own the screen otherwise
        console_handler = RichHandler(
            console=self.console,
            show_time=False,
            show_path=self.config.debug,
            rich_tracebacks=True,
            tracebacks_show_locals=self.config.debug
        )
        console_handler.setLevel(logging.DEBUG if self.config.debug else logging.WARNING)
        root_logger.addHandler(console_handler)

        self.file_handler = logging.handlers.RotatingFileHandler(
            self.config.log_file,
            mode="a",
            maxBytes=self.config.log_max_bytes,
            backupCount=self.config.log_backup_count,
            encoding="utf-8"
        )
        self.file_handler.setLevel(self.file_level)
        self.file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(self.file_handler)

        self._configured = True
        root_logger.info(f"NaK v{__version__} session started")

    def set_level(self, level_setting: str) -> None:
        """Change the file log level at runtime."""
        self.level_setting = level_setting
        if self.file_handler:
            self.file_handler.setLevel(self.file_level)

    def shutdown(self) -> None:
        """Flush and detach handlers."""
        root_logger = logging.getLogger("nak")
        for handler in root_logger.handlers[:]:
            handler.flush()
            handler.close()
            root_logger.removeHandler(handler)
        self.file_handler = None
        self._configured = False

    def get_logger(self, name: str, **context) -> NakLoggerAdapter:
        """Get a logger with NaK-specific context."""
        return NakLoggerAdapter(logging.getLogger(name), context)

    def get_component_logger(self, component: str, **context) -> NakLoggerAdapter:
        """Get a logger for a specific NaK component."""
        context["component"] = component
        return self.get_logger(f"nak.{component}", **context)

    def log_system_info(self, command_exists) -> None:
        """Log system information at startup.

        Args:
            command_exists: Lookup used to report which helper tools are installed
        """
        logger = self.get_logger("nak.system")

        memory = psutil.virtual_memory()
        logger.info(f"OS: {platform.platform()}")
        logger.info(f"Kernel: {platform.release()}")
        logger.info(
            f"Memory: {memory.total // (1024 * 1024)} MB total, "
            f"{memory.available // (1024 * 1024)} MB available"
        )
        for tool in REPORTED_TOOLS:
            status = "found" if command_exists(tool) else "not found"
            logger.info(f"Tool {tool}: {status}")


# Global logging manager instance
_logging_manager: Optional[LoggingManager] = None


def setup_logging(config: NakConfig, level_setting: str = "0") -> LoggingManager:
    """Set up global logging configuration."""
    global _logging_manager
    if _logging_manager is not None:
        _logging_manager.shutdown()
    _logging_manager = LoggingManager(config, level_setting)
    _logging_manager.setup_logging()
    return _logging_manager


def get_logging_manager() -> Optional[LoggingManager]:
    """Return the active logging manager, if logging was set up."""
    return _logging_manager


def get_logger(name: str, **context) -> NakLoggerAdapter:
    """Get a logger instance.

    Handlers are attached by setup_logging(); before that, records go to the
    stdlib last-resort handler only.
    """
    return NakLoggerAdapter(logging.getLogger(name), context)


def get_component_logger(component: str, **context) -> NakLoggerAdapter:
    """Get a component-specific logger."""
    context["component"] = component
    return get_logger(f"nak.{component}", **context)
