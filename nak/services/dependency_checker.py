"""Dependency and disk space checks."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import psutil
from rich.console import Console
from rich.table import Table

from nak.core.lib_logger import get_logger
from nak.services.system_tools import command_exists

logger = get_logger(__name__)


@dataclass
class Dependency:
    """A tool requirement; any one of ``alternatives`` satisfies it."""
    label: str
    alternatives: Sequence[str]
    required: bool = True
    purpose: str = ""


@dataclass
class DependencyStatus:
    dependency: Dependency
    found: Optional[str]

    @property
    def ok(self) -> bool:
        return self.found is not None


REQUIRED_DEPENDENCIES = [
    Dependency("protontricks", ("protontricks",), purpose="Installs components into Proton prefixes"),
    Dependency("curl or wget", ("curl", "wget"), purpose="Downloads releases"),
    Dependency("jq", ("jq",), purpose="Parses release metadata in helper scripts"),
    Dependency("mktemp", ("mktemp",), purpose="Creates temporary files"),
]

OPTIONAL_DEPENDENCIES = [
    Dependency("7-Zip", ("7z", "7za", "7zr", "p7zip"), required=False, purpose="Extracts MO2 archives"),
    Dependency("notify-send", ("notify-send",), required=False, purpose="Desktop notifications"),
    Dependency("xdg-mime", ("xdg-mime",), required=False, purpose="Registers the nxm:// handler"),
]

CRITICAL_DEPENDENCIES = [
    Dependency("bash", ("bash",)),
    Dependency("mktemp", ("mktemp",)),
]


class DependencyChecker:
    """Check for the external tools NaK relies on."""

    def __init__(
        self,
        console: Optional[Console] = None,
        lookup: Callable[[str], bool] = command_exists
    ):
        self.console = console or Console()
        self.lookup = lookup

    def status(self, dependency: Dependency) -> DependencyStatus:
        """Resolve which alternative of a dependency is installed."""
        found = next((name for name in dependency.alternatives if self.lookup(name)), None)
        return DependencyStatus(dependency, found)

    def check_critical_dependencies(self) -> List[str]:
        """Return labels of missing critical dependencies."""
        missing = [d.label for d in CRITICAL_DEPENDENCIES if not self.status(d).ok]
        if missing:
            logger.error(f"Missing critical dependencies: {', '.join(missing)}")
        return missing

    def check_dependencies(self, show: bool = True) -> List[str]:
        """Check required and optional tools, optionally printing a table.

        Returns:
            Labels of missing required dependencies
        """
        statuses = [self.status(d) for d in REQUIRED_DEPENDENCIES + OPTIONAL_DEPENDENCIES]

        if show:
            table = Table(title="Dependencies", show_edge=False)
            table.add_column("", width=2)
            table.add_column("Tool")
            table.add_column("Found as")
            table.add_column("Purpose", style="dim")
            for status in statuses:
                if status.ok:
                    mark = "[green]✓[/green]"
                elif status.dependency.required:
                    mark = "[red]✗[/red]"
                else:
                    mark = "[yellow]○[/yellow]"
                table.add_row(mark, status.dependency.label, status.found or "-", status.dependency.purpose)
            self.console.print(table)

        missing = [s.dependency.label for s in statuses if s.dependency.required and not s.ok]
        for status in statuses:
            if not status.ok:
                level = "Missing required" if status.dependency.required else "Missing optional"
                logger.warning(f"{level} dependency: {status.dependency.label}")
        return missing


def free_disk_mb(path: Path) -> int:
    """Free space in megabytes on the filesystem holding ``path``."""
    target = Path(path)
    while not target.exists() and target != target.parent:
        target = target.parent
    return psutil.disk_usage(str(target)).free // (1024 * 1024)


def check_disk_space(path: Path, required_mb: int) -> bool:
    """Return True when at least ``required_mb`` MB are free at ``path``."""
    available = free_disk_mb(path)
    if available < required_mb:
        logger.warning(f"Insufficient disk space at {path}: {available} MB available, {required_mb} MB required")
        return False
    return True
