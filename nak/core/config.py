"""Application configuration for NaK."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nak.lib.paths import get_nak_config_dir, get_nak_log_file


class NakConfig(BaseSettings):
    """NaK runtime configuration with environment variable support.

    User-facing preferences live in the key=value config store; this object
    only carries paths and tunables that rarely change.
    """

    # Application settings
    debug: bool = Field(default=False)
    config_dir: Path = Field(default_factory=get_nak_config_dir)

    # Logging configuration
    log_file: Path = Field(default_factory=get_nak_log_file)
    log_max_bytes: int = Field(default=5242880, ge=1024)
    log_backup_count: int = Field(default=5, ge=1, le=50)

    # Operation cache
    cache_ttl: int = Field(default=300, ge=0)
    update_check_ttl: int = Field(default=3600, ge=0)
    check_ttl: int = Field(default=60, ge=0)

    # UI
    page_size: int = Field(default=10, ge=1, le=100)
    min_free_disk_gb: int = Field(default=10, ge=0)

    # Update check
    update_repository: str = Field(default="SulfurNitride/NaK")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="NAK_",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("config_dir", "log_file")
    @classmethod
    def expand_user_path(cls, v: Path) -> Path:
        """Expand ~ in configured paths."""
        return Path(v).expanduser()

    @property
    def config_file(self) -> Path:
        """Get the user config store file."""
        return self.config_dir / "config.ini"

