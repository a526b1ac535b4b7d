"""
Menu UI service: numbered menus, paginated selection and simple prompts.
"""

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nak.core.lib_logger import get_logger
from nak.models.ui import MenuOption, SelectionState
from nak.version import __version__

logger = get_logger(__name__)

APP_TITLE = "NaK - The Linux Modding Helper"

OptionLike = Union[MenuOption, Tuple[str, str], str]


class MenuUIService:
    """Service for interactive terminal menus using Rich.

    All input goes through ``reader`` so tests can script answers.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        reader: Optional[Callable[[str], str]] = None,
        page_size: int = 10
    ):
        """Initialize menu UI service.

        Args:
            console: Output console
            reader: Callable taking a prompt and returning one line of input
            page_size: Items per page in select_from_list
        """
        self.console = console or Console()
        self._reader = reader
        self.page_size = page_size

    def read(self, prompt: str) -> str:
        """Read one line of input."""
        if self._reader is not None:
            self.console.print(prompt, end="", markup=False, highlight=False)
            return self._reader(prompt)
        return self.console.input(prompt)

    # ----------------------------------------------------------------- layout

    def print_header(self, breadcrumb: Optional[str] = None) -> None:
        """Print the application banner with the navigation trail."""
        body = f"[bold cyan]{APP_TITLE}[/bold cyan]\n[dim]Version {__version__}[/dim]"
        if breadcrumb:
            body += f"\n📍 {breadcrumb}"
        self.console.print(Panel(body, border_style="cyan", expand=False))

    def print_section(self, title: str) -> None:
        """Print a section divider."""
        self.console.rule(f"[bold]{title}[/bold]")

    def success(self, message: str) -> None:
        self.console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/yellow]")

    def info(self, message: str) -> None:
        self.console.print(message)

    # ------------------------------------------------------------- fixed menu

    @staticmethod
    def to_options(options: Sequence[OptionLike]) -> List[MenuOption]:
        """Normalize labels and (label, description) pairs into MenuOption."""
        result = []
        for option in options:
            if isinstance(option, MenuOption):
                result.append(option)
            elif isinstance(option, tuple):
                label, description = option
                result.append(MenuOption(label=label, description=description))
            else:
                result.append(MenuOption(label=str(option)))
        return result

    def render_menu(self, title: str, options: Sequence[MenuOption]) -> None:
        """Print a numbered option table."""
        self.print_section(title)
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column("Number", style="cyan", width=4, justify="right")
        table.add_column("Icon", width=2)
        table.add_column("Option", style="bold")
        table.add_column("Description", style="dim")

        for number, option in enumerate(options, start=1):
            table.add_row(f"{number}.", option.indicator, option.label, option.description)

        self.console.print(table)

    @staticmethod
    def parse_choice(raw: str, max_choice: int) -> Tuple[Optional[int], Optional[str]]:
        """Validate a menu answer.

        Returns:
            ``(choice, None)`` for a valid answer, ``(None, error)`` otherwise
        """
        raw = raw.strip()
        if not raw:
            return None, "Please enter a number"
        if not raw.isdecimal():
            return None, f"Invalid input: '{raw}' is not a number"
        choice = int(raw)
        if choice < 1 or choice > max_choice:
            return None, f"Invalid choice: {choice}. Please select between 1 and {max_choice}"
        return choice, None

    def display_menu(self, title: str, options: Sequence[OptionLike]) -> int:
        """Show a numbered menu and return the chosen 1-based index.

        Re-prompts until the answer is an integer in ``[1, len(options)]``.
        Back and Exit are ordinary entries.
        """
        menu_options = self.to_options(options)
        if not menu_options:
            raise ValueError("display_menu requires at least one option")

        self.render_menu(title, menu_options)
        max_choice = len(menu_options)

        while True:
            raw = self.read(f"Select an option [1-{max_choice}]: ")
            choice, error = self.parse_choice(raw, max_choice)
            if error:
                self.console.print(f"[red]{error}[/red]")
                logger.debug(f"Rejected menu input {raw!r} in {title}")
                continue
            logger.debug(f"Menu '{title}' choice: {choice}")
            return choice

    # ------------------------------------------------------ paginated selector

    def render_page(self, title: str, state: SelectionState) -> None:
        """Print the current page of a selection."""
        self.print_section(f"{title} (Page {state.current_page}/{state.total_pages})")
        table = Table(show_header=False, show_edge=False, box=None, padding=(0, 1))
        table.add_column("Number", style="cyan", justify="right")
        table.add_column("Item")
        for index, label in state.page_items():
            table.add_row(f"{index}.", label)
        self.console.print(table)

        commands = []
        if state.current_page < state.total_pages:
            commands.append("[cyan]n[/cyan] next page")
        if state.current_page > 1:
            commands.append("[cyan]p[/cyan] previous page")
        commands.append("[cyan]b[/cyan] back")
        self.console.print("  ".join(commands))

    def select_from_list(
        self,
        title: str,
        items: Sequence[str],
        page_size: Optional[int] = None
    ) -> int:
        """Let the user pick one item from a possibly long list.

        Returns:
            1-based index into ``items``, or 0 when the user went back
            (also returned immediately for an empty list)
        """
        if not items:
            self.warning("No items to display.")
            return 0

        state = SelectionState(items=list(items), page_size=page_size or self.page_size)

        while True:
            self.render_page(title, state)
            raw = self.read(f"Enter selection [{state.page_start}-{state.page_end}], n, p or b: ")
            answer = raw.strip().lower()

            if answer == "n":
                if not state.next_page():
                    self.warning("Already on the last page")
                continue
            if answer == "p":
                if not state.previous_page():
                    self.warning("Already on the first page")
                continue
            if answer == "b":
                state.result = 0
                return state.result
            if answer.isdecimal():
                index = int(answer)
                if state.on_current_page(index):
                    state.result = index
                    logger.debug(f"Selected item {index} from {title}")
                    return state.result
                self.console.print(
                    f"[red]Invalid selection: {index}. "
                    f"Choose between {state.page_start} and {state.page_end}[/red]"
                )
                continue
            self.console.print(f"[red]Invalid input: '{raw.strip()}'[/red]")

    # ---------------------------------------------------------------- prompts

    def confirm_action(self, prompt: str, default: str = "y") -> bool:
        """Ask a yes/no question; an empty answer picks ``default``."""
        default = default.lower()
        hint = "[Y/n]" if default == "y" else "[y/N]"
        while True:
            answer = self.read(f"{prompt} {hint}: ").strip().lower()
            if not answer:
                return default == "y"
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self.console.print("[red]Please answer y or n[/red]")

    def pause(self, message: str = "Press Enter to continue...") -> None:
        """Wait for the user to acknowledge."""
        self.read(f"\n{message}")

    def prompt_text(self, prompt: str, default: str = "") -> str:
        """Read free text; empty input yields ``default``."""
        suffix = f" [{default}]" if default else ""
        answer = self.read(f"{prompt}{suffix}: ").strip()
        return answer or default

    def prompt_path(self, prompt: str, default: str = "", allow_back: bool = True) -> Optional[Path]:
        """Read a filesystem path with ``~`` expansion.

        Returns None when ``allow_back`` is set and the user typed ``b``.
        """
        value = self.prompt_text(prompt + (" (or 'b' to go back)" if allow_back else ""), default)
        if allow_back and value.lower() == "b":
            return None
        return Path(value).expanduser()

    def prompt_directory(self, prompt: str, default: str = "", allow_back: bool = True) -> Optional[Path]:
        """Like ``prompt_path`` but re-prompts while the answer names an existing non-directory."""
        while True:
            path = self.prompt_path(prompt, default, allow_back=allow_back)
            if path is None or not path.exists() or path.is_dir():
                return path
            self.console.print(f"[red]{path} exists and is not a directory[/red]")
            logger.debug(f"Rejected non-directory path {path}")
