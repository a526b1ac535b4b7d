"""Progress reporting for long-running external operations."""

import subprocess
import time
from typing import Callable, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)

from nak.core.lib_logger import get_logger
from nak.lib.utils import format_duration

logger = get_logger(__name__)


class ProgressTracker:
    """Percentage bar with ETA for multi-step operations."""

    def __init__(self, console: Optional[Console] = None, detailed: bool = True):
        """Initialize progress tracker.

        Args:
            console: Rich console for output
            detailed: Show a live bar; when False only start/end lines are printed
        """
        self.console = console or Console()
        self.detailed = detailed
        self.progress: Optional[Progress] = None
        self.task_id: Optional[TaskID] = None
        self.title = ""
        self._start_time = 0.0

    def create_progress_bar(self) -> Progress:
        """Create a configured progress bar."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeRemainingColumn(),
            console=self.console,
            transient=True
        )

    def start(self, title: str, total: int = 100) -> None:
        """Begin tracking an operation."""
        self.title = title
        self._start_time = time.monotonic()
        logger.info(f"Started: {title}")

        if self.detailed:
            self.progress = self.create_progress_bar()
            self.progress.start()
            self.task_id = self.progress.add_task(title, total=total)
        else:
            self.console.print(f"[blue]{title}...[/blue]")

    def update(self, current: int, total: Optional[int] = None) -> None:
        """Move the bar to ``current`` out of ``total``."""
        if self.progress is not None and self.task_id is not None:
            self.progress.update(self.task_id, completed=current, total=total)

    def finish(self, success: bool = True) -> float:
        """Stop tracking and print the elapsed time. Returns elapsed seconds."""
        elapsed = time.monotonic() - self._start_time
        if self.progress is not None:
            self.progress.stop()
            self.progress = None
            self.task_id = None

        duration = format_duration(elapsed)
        if success:
            self.console.print(f"[green]✓ {self.title} completed in {duration}[/green]")
            logger.info(f"Completed: {self.title} in {duration}")
        else:
            self.console.print(f"[red]✗ {self.title} failed after {duration}[/red]")
            logger.warning(f"Failed: {self.title} after {duration}")
        return elapsed


class Spinner:
    """Blocking wait on a background process with a status spinner.

    The process runs in parallel, but this thread only polls its liveness;
    nothing else happens until it exits.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        poll_interval: float = 0.2,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.console = console or Console()
        self.poll_interval = poll_interval
        self._sleep = sleep

    def wait(self, process: subprocess.Popen, message: str) -> int:
        """Poll ``process`` until it exits and return its exit code."""
        logger.debug(f"Waiting for pid {process.pid}: {message}")
        with self.console.status(f"[bold blue]{message}[/bold blue]", spinner="line"):
            while process.poll() is None:
                self._sleep(self.poll_interval)
        logger.debug(f"Process {process.pid} exited with {process.returncode}")
        return process.returncode
