"""Vortex setup menu."""

import shutil
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import DownloadError, NakError, UserAbort
from nak.lib.paths import get_home
from nak.lib.utils import to_wine_path
from nak.logic.menus import MenuEntry, run_submenu
from nak.logic.prefix_tools import (
    DpiScalingWizard,
    InstallDependenciesWizard,
    NxmHandlerWizard,
    offer_add_to_steam,
    run_with_proton,
    select_game,
)
from nak.logic.wizard import Wizard, WizardRunner
from nak.services.system_tools import command_exists

logger = get_logger(__name__)

VORTEX_REPOSITORY = "Nexus-Mods/Vortex"
VORTEX_EXECUTABLE = "Vortex.exe"


class VortexAction(str, Enum):
    DOWNLOAD = "download"
    SETUP_EXISTING = "setup_existing"
    INSTALL_DEPENDENCIES = "install_dependencies"
    NXM_HANDLER = "nxm_handler"
    DPI_SCALING = "dpi_scaling"
    BACK = "back"


MENU = [
    MenuEntry(VortexAction.DOWNLOAD, "Download Vortex", "Download and install the latest Vortex release"),
    MenuEntry(VortexAction.SETUP_EXISTING, "Set Up Existing Vortex Installation", "Use a Vortex install you already have"),
    MenuEntry(VortexAction.INSTALL_DEPENDENCIES, "Install Proton Dependencies", "Install common components into a game prefix"),
    MenuEntry(VortexAction.NXM_HANDLER, "Configure NXM Handler", "Let Nexus 'Mod Manager Download' links open Vortex"),
    MenuEntry(VortexAction.DPI_SCALING, "Configure DPI Scaling", "Fix tiny or huge fonts in Vortex"),
    MenuEntry(VortexAction.BACK, "Back to Main Menu", "Return to the main menu"),
]


class DownloadVortexWizard(Wizard):
    """Run the Vortex NSIS installer with system Wine or a game's Proton prefix."""

    title = "Download and Install Vortex"
    help_text = "Check your internet connection. Without system Wine, Proton Experimental must be installed."

    def collect(self, ctx) -> Dict[str, Any]:
        ctx.downloader.client()
        ctx.ui.info("Fetching latest release information from GitHub...")
        release = ctx.downloader.latest_release(VORTEX_REPOSITORY)
        asset = ctx.downloader.find_asset(release, r"^vortex-setup-[0-9.]+\.exe$")
        if asset is None:
            raise DownloadError("Could not find a vortex-setup-*.exe asset in the latest release")
        filename, url = asset
        version = str(release["tag_name"]).lstrip("v")

        install_dir = ctx.ui.prompt_directory("Install to directory", str(get_home() / "Vortex"))
        if install_dir is None:
            raise UserAbort()

        data = {
            "version": version,
            "filename": filename,
            "url": url,
            "install_dir": install_dir,
            "use_system_wine": command_exists("wine"),
        }
        if not data["use_system_wine"]:
            ctx.ui.warning("No system Wine found. Select a game whose Proton prefix will run the installer.")
            game = select_game(ctx, non_steam_only=True)
            if game is None:
                raise UserAbort()
            data["game"] = game
            data["prefix"] = ctx.steam.find_game_prefix(game.appid)
        return data

    def summary(self, data: Dict[str, Any]) -> List[str]:
        runner = "system Wine" if data["use_system_wine"] else f"Proton prefix of {data['game'].name}"
        return [
            f"Install Vortex v{data['version']}",
            f"To: [blue]{data['install_dir']}[/blue]",
            f"Using: {runner}",
        ]

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        install_dir: Path = data["install_dir"]
        installer = ctx.downloader.download(data["url"], ctx.temp_files.create_dir() / data["filename"])

        if not install_dir.exists():
            install_dir.mkdir(parents=True)
            ctx.transactions.add_rollback_action(
                lambda: shutil.rmtree(install_dir, ignore_errors=True), f"remove {install_dir}"
            )

        silent_args = ["/S", f"/D={to_wine_path(install_dir)}"]
        ctx.ui.info("Installing Vortex. This may take a few minutes...")

        if data["use_system_wine"]:
            ctx.runner.run(
                ["wine", str(installer), *silent_args],
                env={"WINEPREFIX": str(get_home() / ".wine")},
                check=True,
            )
        else:
            prefix: Path = data["prefix"]
            target = prefix / "drive_c" / "temp" / data["filename"]
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(installer, target)
            try:
                run_with_proton(ctx, prefix, f"C:\\temp\\{data['filename']}", silent_args)
            finally:
                target.unlink(missing_ok=True)

        if not (install_dir / VORTEX_EXECUTABLE).is_file():
            raise NakError(f"{VORTEX_EXECUTABLE} not found in {install_dir} after installation")

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success(f"Vortex v{data['version']} installed to {data['install_dir']}")
        offer_add_to_steam(ctx, data["install_dir"] / VORTEX_EXECUTABLE, "Vortex")


def setup_existing(ctx) -> None:
    while True:
        directory = ctx.ui.prompt_path("Enter the path to your Vortex directory")
        if directory is None:
            return
        executable = directory / VORTEX_EXECUTABLE
        if executable.is_file():
            break
        ctx.console.print(f"[red]{VORTEX_EXECUTABLE} not found in {directory}.[/red]")

    logger.info(f"Using existing Vortex at {executable}")
    ctx.ui.success(f"Found Vortex at {executable}")
    offer_add_to_steam(ctx, executable, "Vortex")
    if ctx.ui.confirm_action("Configure the NXM handler now?"):
        WizardRunner(ctx).run(NxmHandlerWizard("vortex", executable=executable))


def install_dependencies(ctx) -> None:
    game = select_game(ctx, non_steam_only=True)
    if game is not None:
        WizardRunner(ctx).run(InstallDependenciesWizard(game))
        ctx.ui.pause()


def run_menu(ctx) -> None:
    runner = WizardRunner(ctx)
    handlers = {
        VortexAction.DOWNLOAD: lambda: runner.run(DownloadVortexWizard()),
        VortexAction.SETUP_EXISTING: lambda: setup_existing(ctx),
        VortexAction.INSTALL_DEPENDENCIES: lambda: install_dependencies(ctx),
        VortexAction.NXM_HANDLER: lambda: runner.run(NxmHandlerWizard("vortex")),
        VortexAction.DPI_SCALING: lambda: runner.run(DpiScalingWizard()),
    }
    run_submenu(ctx, "Vortex Setup", MENU, handlers)
