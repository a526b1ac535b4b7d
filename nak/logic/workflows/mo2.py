"""Mod Organizer 2 setup menu."""

from enum import Enum
from pathlib import Path
from typing import Any, Dict

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NakError, ToolNotFoundError
from nak.logic.menus import MenuEntry, run_submenu
from nak.logic.prefix_tools import (
    DpiScalingWizard,
    InstallDependenciesWizard,
    NxmHandlerWizard,
    offer_add_to_steam,
    select_game,
)
from nak.logic.wizard import WizardRunner
from nak.logic.wizard.release import ReleaseInstallWizard
from nak.services.system_tools import SEVEN_ZIP_TOOLS, first_available

logger = get_logger(__name__)

MO2_REPOSITORY = "ModOrganizer2/modorganizer"
MO2_EXECUTABLE = "ModOrganizer.exe"


class Mo2Action(str, Enum):
    DOWNLOAD = "download"
    SETUP_EXISTING = "setup_existing"
    INSTALL_DEPENDENCIES = "install_dependencies"
    NXM_HANDLER = "nxm_handler"
    DPI_SCALING = "dpi_scaling"
    BACK = "back"


MENU = [
    MenuEntry(Mo2Action.DOWNLOAD, "Download Mod Organizer 2", "Download and extract the latest MO2 release"),
    MenuEntry(Mo2Action.SETUP_EXISTING, "Set Up Existing MO2 Installation", "Point NaK at an MO2 folder you already have"),
    MenuEntry(Mo2Action.INSTALL_DEPENDENCIES, "Install Proton Dependencies", "Install common components into a game prefix"),
    MenuEntry(Mo2Action.NXM_HANDLER, "Configure NXM Handler", "Let Nexus 'Mod Manager Download' links open MO2"),
    MenuEntry(Mo2Action.DPI_SCALING, "Configure DPI Scaling", "Fix tiny or huge fonts in MO2"),
    MenuEntry(Mo2Action.BACK, "Back to Main Menu", "Return to the main menu"),
]


class DownloadMo2Wizard(ReleaseInstallWizard):
    """Latest MO2 release into a user-chosen directory."""

    title = "Download Mod Organizer 2"
    repository = MO2_REPOSITORY
    asset_pattern = r"^Mod\.Organizer-[0-9.]+\.7z$"
    product = "Mod Organizer 2"
    default_dir = "~/ModOrganizer2"
    required_mb = 1024

    def collect(self, ctx) -> Dict[str, Any]:
        if first_available(SEVEN_ZIP_TOOLS) is None:
            raise ToolNotFoundError("7z", alternatives=list(SEVEN_ZIP_TOOLS[1:]))
        return super().collect(ctx)

    def verify(self, ctx, data: Dict[str, Any]) -> None:
        exe = find_mo2_executable(data["install_dir"])
        if exe is None:
            raise NakError(f"{MO2_EXECUTABLE} not found after extraction")
        data["executable"] = exe

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success(f"Mod Organizer 2 v{data['version']} installed to {data['install_dir']}")
        offer_add_to_steam(ctx, data["executable"], "Mod Organizer 2")


def find_mo2_executable(directory: Path):
    """Locate ModOrganizer.exe at the top of ``directory`` or one level down."""
    direct = directory / MO2_EXECUTABLE
    if direct.is_file():
        return direct
    for candidate in directory.glob(f"*/{MO2_EXECUTABLE}"):
        return candidate
    return None


def setup_existing(ctx) -> None:
    """Validate an existing MO2 directory and offer follow-up configuration."""
    while True:
        directory = ctx.ui.prompt_path("Enter the path to your MO2 directory")
        if directory is None:
            return
        executable = find_mo2_executable(directory)
        if executable is not None:
            break
        ctx.console.print(f"[red]{MO2_EXECUTABLE} not found in {directory}.[/red]")

    ctx.ui.success(f"Found Mod Organizer 2 at {executable}")
    offer_add_to_steam(ctx, executable, "Mod Organizer 2")
    if ctx.ui.confirm_action("Configure the NXM handler now?"):
        nxm_exe = executable.parent / "nxmhandler.exe"
        WizardRunner(ctx).run(NxmHandlerWizard("mo2", executable=nxm_exe if nxm_exe.is_file() else None))


def install_dependencies(ctx) -> None:
    game = select_game(ctx, non_steam_only=True)
    if game is not None:
        WizardRunner(ctx).run(InstallDependenciesWizard(game))
        ctx.ui.pause()


def run_menu(ctx) -> None:
    runner = WizardRunner(ctx)
    handlers = {
        Mo2Action.DOWNLOAD: lambda: runner.run(DownloadMo2Wizard()),
        Mo2Action.SETUP_EXISTING: lambda: setup_existing(ctx),
        Mo2Action.INSTALL_DEPENDENCIES: lambda: install_dependencies(ctx),
        Mo2Action.NXM_HANDLER: lambda: runner.run(NxmHandlerWizard("mo2")),
        Mo2Action.DPI_SCALING: lambda: runner.run(DpiScalingWizard()),
    }
    run_submenu(ctx, "Mod Organizer 2 Setup", MENU, handlers)
