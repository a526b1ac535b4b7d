"""Read access to the NaK log file."""

from collections import deque
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console

DEFAULT_TAIL_LINES = 20
PROBLEM_LEVELS = ("ERROR", "WARNING")


class LogService:
    """Tail and display the rotating log file."""

    def __init__(self, log_file: Path, console: Optional[Console] = None):
        self.log_file = Path(log_file)
        self.console = console or Console()

    def tail(self, lines: int = DEFAULT_TAIL_LINES, levels: Optional[Iterable[str]] = None) -> List[str]:
        """Return the last ``lines`` log lines, optionally filtered by level.

        Args:
            lines: Maximum number of lines to return
            levels: Only keep records whose ``[LEVEL]`` tag is in this set
        """
        if not self.log_file.exists():
            return []

        wanted = {f"[{level.upper()}]" for level in levels} if levels else None
        buffer: deque = deque(maxlen=lines)
        with open(self.log_file, "r", encoding="utf-8", errors="replace") as fh:
            for line in fh:
                line = line.rstrip("\n")
                if wanted and not any(tag in line for tag in wanted):
                    continue
                buffer.append(line)
        return list(buffer)

    def show_tail(self, lines: int = DEFAULT_TAIL_LINES, levels: Optional[Iterable[str]] = None) -> None:
        """Print the tail of the log with level colouring."""
        entries = self.tail(lines, levels)
        if not entries:
            self.console.print("[dim]No log entries found.[/dim]")
            return

        for entry in entries:
            if "[ERROR]" in entry:
                self.console.print(entry, style="red", markup=False, highlight=False)
            elif "[WARNING]" in entry:
                self.console.print(entry, style="yellow", markup=False, highlight=False)
            else:
                self.console.print(entry, markup=False, highlight=False)

    def backups(self) -> List[Path]:
        """Existing rotated backups, newest first."""
        return sorted(
            self.log_file.parent.glob(f"{self.log_file.name}.*"),
            key=lambda p: int(p.suffix[1:]) if p.suffix[1:].isdecimal() else 0
        )
