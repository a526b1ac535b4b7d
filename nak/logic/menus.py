"""Menu dispatch: enumerated actions and the main menu loop.

Menus map a selection index to an action enum member, never to behaviour
directly, so reordering entries cannot change what an entry does.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from packaging import version

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NakError
from nak.models.ui import MenuOption
from nak.version import __version__

logger = get_logger(__name__)


def is_newer(latest: Optional[str], current: str) -> bool:
    """Whether release ``latest`` is newer than ``current``.

    Unparseable tags fall back to a plain inequality check.
    """
    if not latest:
        return False
    try:
        return version.Version(latest) > version.Version(current)
    except version.InvalidVersion:
        return latest != current


@dataclass(frozen=True)
class MenuEntry:
    """One menu line bound to an action."""
    action: Enum
    label: str
    description: str = ""


def choose_action(ctx, title: str, entries: Sequence[MenuEntry]) -> Enum:
    """Display ``entries`` and return the action of the chosen one."""
    options = [MenuOption(label=e.label, description=e.description) for e in entries]
    index = ctx.ui.display_menu(title, options)
    return entries[index - 1].action


def run_submenu(
    ctx,
    title: str,
    entries: Sequence[MenuEntry],
    handlers: Dict[Enum, Callable[[], object]],
    before_menu: Optional[Callable[[], None]] = None
) -> None:
    """Loop a submenu until an action without a handler (Back) is chosen."""
    while True:
        ctx.ui.print_header(ctx.navigation.breadcrumb())
        if before_menu is not None:
            before_menu()
        action = choose_action(ctx, title, entries)
        handler = handlers.get(action)
        if handler is None:
            logger.debug(f"Leaving {title}")
            return
        label = f"{title}: {action.value}"
        with ctx.error_stack.scope(label):
            run_handler(ctx, label, handler)


def run_handler(ctx, label: str, handler: Callable[[], object]) -> bool:
    """Call ``handler``, reporting any failure instead of leaving the menu loop.

    Closed input (EOFError) still propagates so the session can end.
    """
    try:
        handler()
    except NakError as e:
        ctx.reporter.report(e.message)
        return False
    except EOFError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error in {label}")
        ctx.reporter.report(f"Unexpected error: {e}", help_text="Check the log file for details.")
        return False
    return True


class MainMenuAction(str, Enum):
    """Main menu actions; workflow values name the module to load."""
    MO2 = "mo2"
    VORTEX = "vortex"
    LIMO = "limo"
    TTW = "ttw"
    HOOLAMIKE = "hoolamike"
    SKY_TEX_OPTI = "sky_tex_opti"
    GAMES = "games"
    REMOVE_NXM = "remove_nxm"
    SYSTEM_UTILITIES = "system_utilities"
    EXIT = "exit"


MAIN_MENU = [
    MenuEntry(MainMenuAction.MO2, "Mod Organizer Setup", "Set up MO2 with Proton, NXM handler, and dependencies"),
    MenuEntry(MainMenuAction.VORTEX, "Vortex Setup", "Set up Vortex with Proton, NXM handler, and dependencies"),
    MenuEntry(MainMenuAction.LIMO, "Limo Setup", "Set up game prefixes for Limo (Linux native mod manager)"),
    MenuEntry(MainMenuAction.TTW, "Tale of Two Wastelands", "TTW-specific installation and tools"),
    MenuEntry(MainMenuAction.HOOLAMIKE, "Hoolamike Tools", "Wabbajack and other modlist installations"),
    MenuEntry(MainMenuAction.SKY_TEX_OPTI, "Sky Texture Optimizer", "Run the Skyrim modlist texture optimizer tool"),
    MenuEntry(MainMenuAction.GAMES, "Game-Specific Info", "Fallout NV, Enderal, BG3 fixes and launch options"),
    MenuEntry(MainMenuAction.REMOVE_NXM, "Remove NXM Handlers", "Remove previously configured NXM handlers"),
    MenuEntry(MainMenuAction.SYSTEM_UTILITIES, "System Utilities", "Logs, configuration, and system tools"),
    MenuEntry(MainMenuAction.EXIT, "Exit", "Quit the application"),
]

MENU_TITLES = {entry.action: entry.label for entry in MAIN_MENU}


class Orchestrator:
    """Top-level read-eval loop over the main menu."""

    def __init__(self, ctx):
        self.ctx = ctx

    def welcome(self) -> None:
        """Greeting plus the optional update check."""
        ctx = self.ctx
        ctx.ui.print_header(ctx.navigation.breadcrumb())
        ctx.ui.success("Welcome to NaK - The Linux Modding Helper!")

        if ctx.cached_values.check_updates:
            self.check_for_updates()

    def check_for_updates(self) -> Optional[str]:
        """Compare the running version with the latest release, cached for an hour."""
        ctx = self.ctx
        latest, ok = ctx.cache.get_or_execute(
            "update_check",
            ctx.config.update_check_ttl,
            self._fetch_latest_version,
        )
        if not ok:
            ctx.ui.warning("Update check skipped.")
            return None

        if is_newer(latest, __version__):
            ctx.ui.info(f"[yellow]A new version is available: {latest} (running {__version__})[/yellow]")
        else:
            ctx.ui.success("NaK is up to date.")
        return latest

    def _fetch_latest_version(self) -> str:
        release = self.ctx.downloader.latest_release(self.ctx.config.update_repository)
        return str(release["tag_name"]).lstrip("v")

    def show_status(self) -> None:
        status = self.ctx.diagnostics.system_status()
        self.ctx.console.print(f"System Status: {status.render()}")

    def run_module(self, module_name: str, label: str, function: str = "run_menu") -> bool:
        """Load a workflow module and call ``function(ctx)`` under a breadcrumb."""
        ctx = self.ctx
        ctx.navigation.push(label)
        try:
            with ctx.error_stack.scope(label):
                if not ctx.loader.load(module_name):
                    failure = ctx.loader.failures.get(module_name)
                    message = failure.error.message if failure else f"Could not load {label}"
                    ctx.reporter.report(message, help_text="Reinstall NaK or check the log file.")
                    return False
                entry_point = getattr(ctx.loader.get(module_name), function)
                return run_handler(ctx, label, lambda: entry_point(ctx))
        finally:
            ctx.navigation.pop()

    def dispatch(self, action: MainMenuAction) -> bool:
        """Handle one main menu action. Returns False when the user chose Exit."""
        if action is MainMenuAction.EXIT:
            return False
        label = MENU_TITLES[action]
        if action is MainMenuAction.REMOVE_NXM:
            self.run_module("nxm", label, function="remove_handlers")
        else:
            self.run_module(action.value, label)
        return True

    def main_menu(self) -> int:
        """Run until Exit is chosen and return the exit code."""
        ctx = self.ctx
        while True:
            ctx.ui.print_header(ctx.navigation.breadcrumb())
            self.show_status()
            action = choose_action(ctx, "Main Menu", MAIN_MENU)
            logger.info(f"Main menu: {action.value}")
            if not self.dispatch(action):
                ctx.ui.success("Thank you for using NaK!")
                return 0
