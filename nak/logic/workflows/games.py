"""Game-specific launch options and dependency setup."""

from enum import Enum

from nak.core.lib_logger import get_logger
from nak.logic.menus import MenuEntry, run_submenu
from nak.logic.prefix_tools import InstallDependenciesWizard, launch_options_advice
from nak.logic.wizard import WizardRunner
from nak.models.game import BALDURS_GATE_3, ENDERAL_SE, FALLOUT_NEW_VEGAS, Game

logger = get_logger(__name__)

BG3_LAUNCH_OPTIONS = 'WINEDLLOVERRIDES="DWrite.dll=n,b" %command%'


class GamesAction(str, Enum):
    FALLOUT_NEW_VEGAS = "fallout_new_vegas"
    ENDERAL = "enderal"
    BALDURS_GATE_3 = "baldurs_gate_3"
    BACK = "back"


MENU = [
    MenuEntry(GamesAction.FALLOUT_NEW_VEGAS, "Fallout New Vegas", "Launch options and modding dependencies"),
    MenuEntry(GamesAction.ENDERAL, "Enderal Special Edition", "Launch options and modding dependencies"),
    MenuEntry(GamesAction.BALDURS_GATE_3, "Baldur's Gate 3", "Launch options for script extender mods"),
    MenuEntry(GamesAction.BACK, "Back to Main Menu", "Return to the main menu"),
]

GAMES = {
    GamesAction.FALLOUT_NEW_VEGAS: Game(appid=FALLOUT_NEW_VEGAS, name="Fallout New Vegas"),
    GamesAction.ENDERAL: Game(appid=ENDERAL_SE, name="Enderal Special Edition"),
    GamesAction.BALDURS_GATE_3: Game(appid=BALDURS_GATE_3, name="Baldur's Gate 3"),
}


def show_game(ctx, game: Game, offer_dependencies: bool = True) -> None:
    """Print recommended launch options and optionally install dependencies."""
    ctx.ui.print_section(f"{game.name} Options")
    if ctx.steam.find_game_compatdata(game.appid) is None:
        ctx.ui.warning(f"{game.name} has not been run yet or is not installed.")
        ctx.ui.info("Run the game at least once through Steam before using these options.")
        logger.warning(f"Compatdata not found for {game.name}")
        ctx.ui.pause()
        return

    if game.appid == BALDURS_GATE_3:
        advice = BG3_LAUNCH_OPTIONS
    else:
        advice = launch_options_advice(ctx, game)
    ctx.ui.info(f"Recommended launch options for {game.name}:")
    ctx.console.print(f"  [blue]{advice}[/blue]", markup=True, highlight=False)
    logger.info(f"Displayed launch options for {game.name}")

    if offer_dependencies and ctx.ui.confirm_action(f"Install {game.name} dependencies for modding?"):
        WizardRunner(ctx).run(InstallDependenciesWizard(game))
    ctx.ui.pause()


def run_menu(ctx) -> None:
    handlers = {
        action: (lambda game=game: show_game(ctx, game, offer_dependencies=game.appid != BALDURS_GATE_3))
        for action, game in GAMES.items()
    }
    run_submenu(ctx, "Game-Specific Info", MENU, handlers)
