"""Error context stack and user-facing error reporting.

Low-level code raises; the layer that knows whether a failure is
recoverable calls ``ErrorReporter.report``. The context stack lets that
report name the operation that was running without the low-level code
knowing about menus.
"""

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nak.core.lib_logger import get_logger
from nak.services.log_service import PROBLEM_LEVELS, LogService

logger = get_logger(__name__)

UNKNOWN_CONTEXT = "Unknown context"


class ErrorContextStack:
    """LIFO stack of operation labels used to annotate errors."""

    def __init__(self):
        self._labels: List[str] = []

    def push(self, label: str) -> None:
        """Enter a logical operation."""
        self._labels.append(label)
        logger.debug(f"Entering context: {label}")

    def pop(self) -> Optional[str]:
        """Leave the current operation. No-op on an empty stack."""
        if not self._labels:
            return None
        label = self._labels.pop()
        logger.debug(f"Leaving context: {label}")
        return label

    def current(self) -> str:
        """Label of the innermost operation, or ``Unknown context``."""
        return self._labels[-1] if self._labels else UNKNOWN_CONTEXT

    @contextmanager
    def scope(self, label: str) -> Iterator[None]:
        """Push ``label`` for the duration of a block and always pop it."""
        depth = len(self._labels)
        self.push(label)
        try:
            yield
        finally:
            # Drop anything a failed inner operation left behind as well
            del self._labels[depth:]

    @property
    def labels(self) -> List[str]:
        """Copy of the stack, outermost first."""
        return list(self._labels)

    def __len__(self) -> int:
        return len(self._labels)


class ErrorReporter:
    """Display, log and (for fatal errors) terminate on errors."""

    def __init__(
        self,
        context_stack: ErrorContextStack,
        log_service: LogService,
        console: Optional[Console] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        cleanup: Optional[Callable[[], None]] = None
    ):
        """Initialize the reporter.

        Args:
            context_stack: Stack consulted for the current operation label
            log_service: Used to suggest and show the log tail
            console: Output console
            confirm: Yes/no prompt; when None the log tail is never offered
            cleanup: Global cleanup hook run before a fatal exit
        """
        self.context_stack = context_stack
        self.log_service = log_service
        self.console = console or Console()
        self.confirm = confirm
        self.cleanup = cleanup
        self.history: List[dict] = []

    def report(
        self,
        message: str,
        fatal: bool = False,
        exit_code: int = 1,
        help_text: Optional[str] = None
    ) -> None:
        """Record and display an error.

        Args:
            message: What went wrong
            fatal: Run cleanup and exit with ``exit_code`` after reporting
            exit_code: Process exit status for fatal errors
            help_text: Optional hint on how to fix the problem

        Raises:
            SystemExit: When ``fatal`` is True
        """
        context = self.context_stack.current()
        self.history.append({
            "context": context,
            "message": message,
            "fatal": fatal,
            "help": help_text,
        })
        logger.error(f"Context: {context} | Error: {message}")

        self._render(context, message, help_text)

        if self.confirm is not None and self.log_service.log_file.exists():
            self.console.print(f"Check the log file for details: [blue]{self.log_service.log_file}[/blue]")
            if self.confirm("Show recent log entries?"):
                self.log_service.show_tail(levels=PROBLEM_LEVELS)

        if fatal:
            logger.error(f"Fatal error, exiting with code {exit_code}")
            self._run_cleanup()
            raise SystemExit(exit_code)

    def error_exit(self, message: str, help_text: Optional[str] = None) -> None:
        """Report a fatal error with exit code 1."""
        self.report(message, fatal=True, exit_code=1, help_text=help_text)

    def _render(self, context: str, message: str, help_text: Optional[str]) -> None:
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Context:", context)
        table.add_row("Error:", f"[red]{message}[/red]")
        if help_text:
            table.add_row("Help:", f"[yellow]{help_text}[/yellow]")

        self.console.print(Panel(table, title="[bold red]ERROR[/bold red]", border_style="red"))

    def _run_cleanup(self) -> None:
        if self.cleanup is None:
            return
        try:
            self.cleanup()
        except Exception as e:
            logger.warning(f"Cleanup before exit failed: {e}")
