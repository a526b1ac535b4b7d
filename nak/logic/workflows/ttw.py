"""Tale of Two Wastelands installation through Hoolamike.

TTW merges Fallout 3 into Fallout New Vegas. Hoolamike does the actual
install from the TTW ``.mpi`` package, which users download by hand into
the Hoolamike directory.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NakError, SteamNotFoundError
from nak.logic.menus import MenuEntry, run_submenu
from nak.logic.prefix_tools import InstallDependenciesWizard
from nak.logic.wizard import WizardRunner
from nak.logic.workflows.hoolamike import (
    CONFIG_NAME,
    DownloadHoolamikeWizard,
    get_hoolamike_dir,
    load_config,
    run_hoolamike,
)
from nak.models.game import FALLOUT_NEW_VEGAS, Game
from nak.models.wizard_state import WizardPhase

logger = get_logger(__name__)

TTW_COMMAND = "tale-of-two-wastelands"
TTW_MARKER = "TTW_Data.esm"
DEFAULT_OUTPUT = "TTW_Output"
MPI_DOWNLOAD_URL = "https://mod.pub/ttw/133/files"
# 10000 minutes
MPI_WAIT_TIMEOUT = 600_000
MPI_POLL_INTERVAL = 1.0

FNV = Game(appid=FALLOUT_NEW_VEGAS, name="Fallout New Vegas")


class TtwAction(str, Enum):
    AUTOMATED_SETUP = "automated_setup"
    DOWNLOAD_HOOLAMIKE = "download_hoolamike"
    FNV_DEPENDENCIES = "fnv_dependencies"
    RUN_INSTALLATION = "run_installation"
    DOCUMENTATION = "documentation"
    BACK = "back"


MENU = [
    MenuEntry(TtwAction.AUTOMATED_SETUP, "Automated TTW Setup", "Complete automated installation (all steps at once)"),
    MenuEntry(TtwAction.DOWNLOAD_HOOLAMIKE, "Download/Update Hoolamike", "Install Hoolamike and configure it for TTW"),
    MenuEntry(TtwAction.FNV_DEPENDENCIES, "Install FNV Dependencies", "Install Fallout New Vegas Proton dependencies"),
    MenuEntry(TtwAction.RUN_INSTALLATION, "Run TTW Installation", "Execute TTW installation with Hoolamike"),
    MenuEntry(TtwAction.DOCUMENTATION, "View TTW Documentation", "TTW installation guides and requirements"),
    MenuEntry(TtwAction.BACK, "Back to Main Menu", "Return to the main menu"),
]


def hoolamike_installed() -> bool:
    return (get_hoolamike_dir() / "hoolamike").is_file()


def find_mpi_file(directory: Path) -> Optional[Path]:
    """First ``*.mpi`` file in ``directory``, by name."""
    candidates = sorted(directory.glob("*.mpi")) if directory.is_dir() else []
    return candidates[0] if candidates else None


def ttw_output_dir(hoolamike_dir: Path) -> Path:
    """TTW destination from hoolamike.yaml, resolved against ``hoolamike_dir``."""
    try:
        config = load_config(hoolamike_dir / CONFIG_NAME)
    except NakError:
        return hoolamike_dir / DEFAULT_OUTPUT
    ttw = (config.get("extras") or {}).get("tale_of_two_wastelands") or {}
    destination = (ttw.get("variables") or {}).get("DESTINATION")
    if not destination:
        return hoolamike_dir / DEFAULT_OUTPUT
    path = Path(destination).expanduser()
    return path if path.is_absolute() else hoolamike_dir / path


def check_ttw_installation(ctx) -> bool:
    """Whether TTW_Data.esm exists in the Hoolamike output or FNV's Data folder."""
    if (ttw_output_dir(get_hoolamike_dir()) / TTW_MARKER).is_file():
        return True
    try:
        fnv_dir = ctx.steam.find_game_directory("Fallout New Vegas")
    except SteamNotFoundError:
        return False
    return fnv_dir is not None and (fnv_dir / "Data" / TTW_MARKER).is_file()


def wait_for_mpi_file(
    ctx,
    timeout: float = MPI_WAIT_TIMEOUT,
    poll_interval: float = MPI_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic
) -> Path:
    """Poll the Hoolamike directory until an MPI file appears.

    Raises:
        NakError: If nothing appears within ``timeout`` seconds
    """
    directory = get_hoolamike_dir()
    ctx.ui.print_section("Waiting for TTW MPI File")
    ctx.ui.info(f"MPI File can be found here [blue]{MPI_DOWNLOAD_URL}[/blue]")
    ctx.ui.info(f"Download it and place the TTW MPI file in: [blue]{directory}[/blue]")
    ctx.ui.info("Press Ctrl+C at any time to cancel...")

    deadline = clock() + timeout
    with ctx.console.status("Waiting for the MPI file..."):
        while True:
            mpi_file = find_mpi_file(directory)
            if mpi_file is not None:
                logger.info(f"Found MPI file: {mpi_file}")
                ctx.ui.success(f"Detected MPI file: {mpi_file.name}")
                return mpi_file
            if clock() >= deadline:
                raise NakError("Timed out waiting for MPI file. Please try again after downloading the file.")
            sleep(poll_interval)


def show_mpi_instructions(ctx) -> None:
    ctx.ui.warning("No TTW MPI file detected.")
    ctx.ui.info(f"Download the TTW installer from [blue]{MPI_DOWNLOAD_URL}[/blue]")
    ctx.ui.info("Extract the .mpi file from the latest 'TTW_*.7z' archive")
    ctx.ui.info(f"Then place it in: [blue]{get_hoolamike_dir()}[/blue]")


def ensure_mpi_file(ctx) -> bool:
    """Make sure an MPI file is present, offering to wait for one."""
    if find_mpi_file(get_hoolamike_dir()) is not None:
        return True
    show_mpi_instructions(ctx)
    if not ctx.ui.confirm_action("Wait for MPI file?"):
        return False
    wait_for_mpi_file(ctx)
    return True


def run_installation(ctx) -> None:
    if not hoolamike_installed():
        raise NakError("Hoolamike is not installed. Please install it first.")
    if ensure_mpi_file(ctx):
        run_hoolamike(ctx, [TTW_COMMAND])
    ctx.ui.pause()


def install_fnv_dependencies(ctx) -> WizardPhase:
    state = WizardRunner(ctx).run(InstallDependenciesWizard(FNV))
    return state.phase


def automated_setup(ctx) -> bool:
    """Hoolamike, FNV dependencies, MPI file and the TTW install in one pass.

    Returns True when the installation ran to completion.
    """
    ctx.ui.print_section("Automated TTW Installation")
    ctx.ui.info("This will perform a complete setup of Tale of Two Wastelands:")
    ctx.ui.info("1. Download and install Hoolamike")
    ctx.ui.info("2. Install Fallout New Vegas Proton dependencies")
    ctx.ui.info("3. Wait for the TTW MPI file (if needed)")
    ctx.ui.info("4. Run the TTW installation")
    ctx.ui.warning("NOTE: This process will take a long time to complete!")
    if not ctx.ui.confirm_action("Start complete TTW setup?"):
        ctx.ui.warning("Setup cancelled.")
        return False

    ctx.downloader.client()

    ctx.ui.print_section("Step 1: Hoolamike")
    if hoolamike_installed():
        ctx.ui.success("✓ Hoolamike already installed")
        logger.info("Hoolamike already installed, skipping download")
    else:
        state = WizardRunner(ctx).run(DownloadHoolamikeWizard())
        if state.phase is not WizardPhase.SUCCESS or not hoolamike_installed():
            raise NakError("Hoolamike download failed")

    ctx.ui.print_section("Step 2: Fallout New Vegas dependencies")
    if install_fnv_dependencies(ctx) is not WizardPhase.SUCCESS:
        ctx.ui.warning("Continuing without the FNV dependencies; install them later from this menu.")

    ctx.ui.print_section("Step 3: TTW MPI file")
    if find_mpi_file(get_hoolamike_dir()) is not None:
        ctx.ui.success("✓ TTW MPI file found")
    elif not ensure_mpi_file(ctx):
        ctx.ui.warning("Setup paused. Run again after downloading the MPI file.")
        return False

    ctx.ui.print_section("Step 4: Installing Tale of Two Wastelands")
    ctx.ui.warning("This will take a VERY long time (potentially hours)")
    if not ctx.ui.confirm_action("Ready to begin TTW installation?"):
        ctx.ui.warning("Installation cancelled.")
        return False

    run_hoolamike(ctx, [TTW_COMMAND])
    ctx.ui.success("Tale of Two Wastelands setup complete!")
    ctx.ui.pause()
    return True


def show_documentation(ctx) -> None:
    ctx.ui.print_section("Tale of Two Wastelands Documentation")
    ctx.ui.info("Tale of Two Wastelands (TTW) combines Fallout 3 and Fallout New Vegas into one game.")
    ctx.ui.info("")
    ctx.ui.info("[bold]Official Resources:[/bold]")
    ctx.ui.info("- Official Website: [blue]https://taleoftwowastelands.com/[/blue]")
    ctx.ui.info("- Installation Guide: [blue]https://taleoftwowastelands.com/wiki_ttw/get-started/[/blue]")
    ctx.ui.info("- TTW Discord: [blue]https://discord.gg/taleoftwowastelands[/blue]")
    ctx.ui.info("")
    ctx.ui.info("[bold]Using Hoolamike:[/bold]")
    ctx.ui.info("- GitHub Repository: [blue]https://github.com/Niedzwiedzw/hoolamike[/blue]")
    ctx.ui.info("")
    ctx.ui.info("[bold]Requirements:[/bold]")
    ctx.ui.info("1. Original copies of Fallout 3 GOTY and Fallout New Vegas Ultimate Edition")
    ctx.ui.info("2. Both games must be installed and have run at least once")
    ctx.ui.info("3. The TTW MPI installer file (download from the TTW website)")
    ctx.ui.info("")
    ctx.ui.info("[bold]Linux-Specific Tips:[/bold]")
    ctx.ui.info("- Install the FNV dependencies through this menu first")
    ctx.ui.info("- Be patient, the installation can take several hours")
    ctx.ui.pause("Press Enter to return to the TTW menu...")


def run_menu(ctx) -> None:
    def before_menu():
        hoolamike = "[green]Installed[/green]" if hoolamike_installed() else "[red]Not Installed[/red]"
        ttw = "[green]Installed[/green]" if check_ttw_installation(ctx) else "[red]Not Installed[/red]"
        ctx.ui.info(f"Hoolamike: {hoolamike}")
        ctx.ui.info(f"TTW: {ttw}")

    def download():
        WizardRunner(ctx).run(DownloadHoolamikeWizard())
        ctx.ui.pause()

    def fnv_dependencies():
        install_fnv_dependencies(ctx)
        ctx.ui.pause()

    handlers = {
        TtwAction.AUTOMATED_SETUP: lambda: automated_setup(ctx),
        TtwAction.DOWNLOAD_HOOLAMIKE: download,
        TtwAction.FNV_DEPENDENCIES: fnv_dependencies,
        TtwAction.RUN_INSTALLATION: lambda: run_installation(ctx),
        TtwAction.DOCUMENTATION: lambda: show_documentation(ctx),
    }
    run_submenu(ctx, "Tale of Two Wastelands Setup", MENU, handlers, before_menu=before_menu)
