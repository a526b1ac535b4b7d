"""System status, comprehensive checks and diagnostics export."""

import platform
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import psutil
import yaml
from rich.console import Console

from nak.core.config import NakConfig
from nak.core.lib_logger import get_logger
from nak.lib.paths import get_home
from nak.services.config_store import ConfigStore
from nak.services.dependency_checker import DependencyChecker, free_disk_mb
from nak.services.log_service import LogService
from nak.services.operation_cache import OperationCache
from nak.services.system_tools import require_command
from nak.version import __version__

logger = get_logger(__name__)


@dataclass
class SystemStatus:
    """One-line status shown above the main menu."""
    protontricks: bool
    seven_zip: bool
    free_gb: float
    disk_ok: bool

    def render(self) -> str:
        parts = [
            ("[green]✓[/green]" if self.protontricks else "[red]✗[/red]") + " Protontricks",
            ("[green]✓[/green]" if self.seven_zip else "[yellow]○[/yellow]") + " 7-Zip",
            "[green]✓[/green] Disk Space" if self.disk_ok else "[yellow]![/yellow] Low Disk",
        ]
        return "  ".join(parts)


class DiagnosticsService:
    """Gather and export information useful for troubleshooting."""

    def __init__(
        self,
        config: NakConfig,
        config_store: ConfigStore,
        cache: OperationCache,
        log_service: LogService,
        dependency_checker: DependencyChecker,
        console: Optional[Console] = None
    ):
        self.config = config
        self.config_store = config_store
        self.cache = cache
        self.log_service = log_service
        self.dependency_checker = dependency_checker
        self.console = console or Console()

    def system_status(self) -> SystemStatus:
        """Cheap status checks, memoized for ``check_ttl`` seconds."""
        _, protontricks = self.cache.get_or_execute(
            "protontricks_check", self.config.check_ttl, require_command, "protontricks"
        )
        _, seven_zip = self.cache.get_or_execute(
            "7z_check", self.config.check_ttl, require_command, "7z"
        )
        free_gb = free_disk_mb(get_home()) / 1024
        return SystemStatus(
            protontricks=protontricks,
            seven_zip=seven_zip,
            free_gb=round(free_gb, 1),
            disk_ok=free_gb > self.config.min_free_disk_gb,
        )

    def system_info(self) -> Dict[str, Any]:
        """Describe the host system."""
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage(str(get_home()))
        return {
            "os": platform.platform(),
            "kernel": platform.release(),
            "python": platform.python_version(),
            "memory_total_mb": memory.total // (1024 * 1024),
            "memory_available_mb": memory.available // (1024 * 1024),
            "home_free_gb": round(disk.free / (1024 ** 3), 1),
        }

    def comprehensive_check(self) -> bool:
        """Print system info and the dependency table. True when nothing required is missing."""
        info = self.system_info()
        self.console.print("[bold]System[/bold]")
        for key, value in info.items():
            self.console.print(f"  {key}: {value}")
        missing = self.dependency_checker.check_dependencies(show=True)
        if missing:
            self.console.print(f"[red]Missing required: {', '.join(missing)}[/red]")
        else:
            self.console.print("[green]All required dependencies are installed.[/green]")
        return not missing

    def export_diagnostics(self, destination: Optional[Path] = None) -> Path:
        """Write a YAML diagnostics bundle and return its path."""
        timestamp = datetime.now()
        if destination is None:
            destination = get_home() / f"nak-diagnostics-{timestamp.strftime('%Y%m%d-%H%M%S')}.yaml"

        missing = self.dependency_checker.check_dependencies(show=False)
        bundle = {
            "nak_version": __version__,
            "generated": timestamp.isoformat(timespec="seconds"),
            "system": self.system_info(),
            "configuration": self.config_store.all(),
            "missing_dependencies": missing,
            "cache": self.cache.get_stats(),
            "log_file": str(self.log_service.log_file),
            "recent_log": self.log_service.tail(50),
        }

        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        with open(destination, "w", encoding="utf-8") as fh:
            yaml.safe_dump(bundle, fh, default_flow_style=False, sort_keys=False, allow_unicode=True)

        logger.info(f"Diagnostics exported to {destination}")
        return destination
