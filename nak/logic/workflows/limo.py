"""Limo setup: prepare game prefixes for the native Linux mod manager."""

from nak.core.lib_logger import get_logger
from nak.logic.prefix_tools import InstallDependenciesWizard, select_game
from nak.logic.wizard import WizardRunner
from nak.models.wizard_state import WizardPhase

logger = get_logger(__name__)


def configure_game(ctx) -> bool:
    """Install dependencies for one game. Returns False when the user backs out."""
    game = select_game(ctx, title="Select a Game for Limo")
    if game is None:
        return False

    state = WizardRunner(ctx).run(InstallDependenciesWizard(game))
    if state.phase is WizardPhase.SUCCESS:
        prefix = ctx.steam.find_game_prefix(game.appid)
        ctx.ui.info(f"Prefix for {game.name}: [blue]{prefix}[/blue]")
        ctx.ui.info("Point Limo at this prefix when adding the game.")
        logger.info(f"Limo prefix ready for {game.name}: {prefix}")
    return True


def run_menu(ctx) -> None:
    ctx.ui.print_header(ctx.navigation.breadcrumb())
    ctx.ui.print_section("Limo Setup")
    ctx.ui.info("Limo runs natively; it only needs each game's Proton prefix prepared.")
    while configure_game(ctx):
        if not ctx.ui.confirm_action("Configure another game?", default="n"):
            break
