"""Persistent key=value settings store.

The file is plain text: ``#`` comments and ``key=value`` lines. Reads scan
for the first ``key=`` line; writes replace that line in place or append
it, and hit the disk immediately.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import ConfigStoreError

logger = get_logger(__name__)

DEFAULT_CONFIG: Dict[str, str] = {
    "logging_level": "0",
    "show_advanced_options": "false",
    "hoolamike_version": "",
    "check_updates": "true",
    "enable_telemetry": "false",
    "preferred_game_appid": "",
    "default_scaling": "96",
    "enable_detailed_progress": "true",
    "auto_detect_games": "true",
    "cache_steam_path": "true",
}

TRUE_VALUES = {"true", "yes", "1", "on"}


@dataclass
class CachedValues:
    """Settings read once at startup and kept in memory."""
    show_advice: bool = True
    default_scaling: str = "96"
    check_updates: bool = True
    show_advanced_options: bool = False


class ConfigStore:
    """Key/value settings persisted to ``config.ini``."""

    def __init__(self, config_file: Path, defaults: Optional[Dict[str, str]] = None):
        """Initialize the store.

        Args:
            config_file: Location of the settings file; created lazily
            defaults: Defaults table written on first run
        """
        self.config_file = Path(config_file)
        self.defaults = dict(DEFAULT_CONFIG if defaults is None else defaults)

    def ensure_exists(self) -> None:
        """Create the settings file with the defaults table if missing."""
        if self.config_file.exists():
            return

        logger.info(f"Creating default configuration at {self.config_file}")
        lines = [
            "# NaK Configuration",
            f"# Created: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        ]
        lines.extend(f"{key}={value}" for key, value in self.defaults.items())
        self._write_lines(lines)

    def get(self, key: str, default: str = "") -> str:
        """Return the stored value, or ``default`` when absent or empty."""
        try:
            self.ensure_exists()
            lines = self._read_lines()
        except ConfigStoreError as e:
            logger.warning(f"Config store unavailable, using default for {key}: {e}")
            return default

        prefix = f"{key}="
        for line in lines:
            if line.startswith(prefix):
                value = line[len(prefix):].strip()
                return value if value else default
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Read a value as a boolean."""
        value = self.get(key, "true" if default else "false")
        return value.lower() in TRUE_VALUES

    def set(self, key: str, value: str) -> None:
        """Upsert ``key`` and persist immediately."""
        if not key or "=" in key or "\n" in key:
            raise ConfigStoreError(f"Invalid config key: {key!r}", self.config_file)

        self.ensure_exists()
        value = str(value).replace("\n", " ")
        prefix = f"{key}="
        lines = self._read_lines()

        for i, line in enumerate(lines):
            if line.startswith(prefix):
                lines[i] = f"{key}={value}"
                break
        else:
            lines.append(f"{key}={value}")

        self._write_lines(lines)
        logger.info(f"Config updated: {key}={value}")

    def all(self) -> Dict[str, str]:
        """Return every stored entry in file order."""
        self.ensure_exists()
        entries: Dict[str, str] = {}
        for line in self._read_lines():
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            entries.setdefault(key.strip(), value.strip())
        return entries

    def reset(self) -> None:
        """Discard the settings file and recreate it from defaults."""
        if self.config_file.exists():
            self.config_file.unlink()
        self.ensure_exists()
        logger.info("Configuration reset to defaults")

    def load_cached_values(self) -> CachedValues:
        """Read the settings that the menus consult on every redraw."""
        return CachedValues(
            show_advice=self.get_bool("show_advice", True),
            default_scaling=self.get("default_scaling", "96"),
            check_updates=self.get_bool("check_updates", True),
            show_advanced_options=self.get_bool("show_advanced_options", False),
        )

    def _read_lines(self) -> list:
        try:
            return self.config_file.read_text(encoding="utf-8", errors="replace").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise ConfigStoreError(f"Failed to read configuration: {e}", self.config_file) from e

    def _write_lines(self, lines: list) -> None:
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = self.config_file.with_suffix(".tmp")
            tmp_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
            os.replace(tmp_file, self.config_file)
        except OSError as e:
            raise ConfigStoreError(f"Failed to write configuration: {e}", self.config_file) from e
