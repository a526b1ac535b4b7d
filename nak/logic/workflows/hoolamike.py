"""Hoolamike: Wabbajack modlist installer for Linux."""

import re
import shlex
import stat
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import CommandFailedError, NakError, UserAbort
from nak.lib.paths import get_home
from nak.logic.menus import MenuEntry, run_submenu
from nak.logic.wizard import WizardRunner
from nak.logic.wizard.release import ReleaseInstallWizard
from nak.models.game import FALLOUT_NEW_VEGAS

logger = get_logger(__name__)

HOOLAMIKE_REPOSITORY = "Niedzwiedzw/hoolamike"
CONFIG_NAME = "hoolamike.yaml"
MODLIST_COMMANDS = ("install", "wabbajack")

# Game key in hoolamike.yaml -> directory name under steamapps/common
GAME_DIRECTORIES = {
    "Fallout3": "Fallout 3 goty",
    "FalloutNewVegas": "Fallout New Vegas",
    "EnderalSpecialEdition": "Enderal Special Edition",
    "SkyrimSpecialEdition": "Skyrim Special Edition",
    "Fallout4": "Fallout 4",
    "Starfield": "Starfield",
    "Oblivion": "Oblivion",
    "BaldursGate3": "Baldurs Gate 3",
}


def get_hoolamike_dir() -> Path:
    return get_home() / "Hoolamike"


def get_summary_log() -> Path:
    return get_home() / "hoolamike_summary.log"


class HoolamikeAction(str, Enum):
    DOWNLOAD = "download"
    RUN_COMMAND = "run_command"
    INSTALL_MODLIST = "install_modlist"
    SHOW_CONFIG = "show_config"
    BACK = "back"


MENU = [
    MenuEntry(HoolamikeAction.DOWNLOAD, "Download/Update Hoolamike", "Install the latest Hoolamike release"),
    MenuEntry(HoolamikeAction.INSTALL_MODLIST, "Install Wabbajack Modlist", "Run 'hoolamike install' (Nexus Premium)"),
    MenuEntry(HoolamikeAction.RUN_COMMAND, "Run Hoolamike Command", "Run any Hoolamike command in ~/Hoolamike"),
    MenuEntry(HoolamikeAction.SHOW_CONFIG, "Show Configuration", "Print the current hoolamike.yaml"),
    MenuEntry(HoolamikeAction.BACK, "Back to Main Menu", "Return to the main menu"),
]


def build_default_config(ctx) -> Dict[str, Any]:
    """Default hoolamike.yaml contents with every detected game directory."""
    home = get_home()
    games: Dict[str, Any] = {}
    for key, directory_name in GAME_DIRECTORIES.items():
        directory = ctx.steam.find_game_directory(directory_name)
        if directory is not None:
            games[key] = {"root_directory": str(directory)}

    ttw_variables = {"DESTINATION": "./TTW_Output"}
    compatdata = ctx.steam.find_game_compatdata(FALLOUT_NEW_VEGAS)
    if compatdata is not None:
        ttw_variables["USERPROFILE"] = str(
            compatdata / "pfx" / "drive_c" / "users" / "steamuser" / "Documents" / "My Games" / "FalloutNV"
        ) + "/"
    else:
        logger.warning("FNV compatdata not found; USERPROFILE left out of hoolamike.yaml")

    return {
        "downloaders": {
            "downloads_directory": str(get_hoolamike_dir() / "Mod_Downloads"),
            "nexus": {"api_key": "YOUR_API_KEY_HERE"},
        },
        "installation": {
            "wabbajack_file_path": "./wabbajack",
            "installation_path": str(home / "ModdedGames"),
        },
        "games": games,
        "fixup": {"game_resolution": "2560x1440"},
        "extras": {
            "tale_of_two_wastelands": {
                "path_to_ttw_mpi_file": "./Tale of Two Wastelands 3.3.3b.mpi",
                "variables": ttw_variables,
            },
        },
    }


def write_config(path: Path, config: Dict[str, Any]) -> None:
    header = (
        "# Auto-generated hoolamike.yaml\n"
        "# Edit paths if not detected correctly\n\n"
    )
    path.write_text(header + yaml.safe_dump(config, sort_keys=False), encoding="utf-8")


def load_config(path: Path) -> Dict[str, Any]:
    """Read hoolamike.yaml.

    Raises:
        NakError: If the file is missing or is not a YAML mapping
    """
    if not path.is_file():
        raise NakError(f"Hoolamike configuration file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise NakError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise NakError(f"{path} does not contain a YAML mapping")
    return data


class DownloadHoolamikeWizard(ReleaseInstallWizard):
    """Install or update the Hoolamike binary, keeping an existing config."""

    title = "Download Hoolamike"
    repository = HOOLAMIKE_REPOSITORY
    asset_pattern = r"hoolamike.*linux"
    product = "Hoolamike"
    default_dir = "~/Hoolamike"
    asset_flags = re.IGNORECASE
    required_mb = 256

    def handle_existing(self, ctx, install_dir: Path) -> None:
        installed = ctx.config_store.get("hoolamike_version")
        suffix = f" (v{installed})" if installed else ""
        ctx.ui.warning(f"Hoolamike is already installed at {install_dir}{suffix}")
        if not ctx.ui.confirm_action("Update Hoolamike?", default="n"):
            raise UserAbort("Update cancelled")

    def verify(self, ctx, data: Dict[str, Any]) -> None:
        binary = data["install_dir"] / "hoolamike"
        if not binary.is_file():
            raise NakError(f"hoolamike binary not found in {data['install_dir']} after extraction")
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def post_install(self, ctx, data: Dict[str, Any]) -> None:
        config_path = data["install_dir"] / CONFIG_NAME
        if not config_path.exists():
            write_config(config_path, build_default_config(ctx))
            ctx.transactions.add_rollback_action(
                lambda: config_path.unlink(missing_ok=True), f"remove {config_path}"
            )
            logger.info(f"{CONFIG_NAME} created at {config_path}")
            data["config_created"] = True

        previous = ctx.config_store.get("hoolamike_version")
        ctx.config_store.set("hoolamike_version", data["version"])
        ctx.transactions.add_rollback_action(
            lambda: ctx.config_store.set("hoolamike_version", previous), "restore hoolamike_version"
        )

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        config_path = data["install_dir"] / CONFIG_NAME
        ctx.ui.success(f"Hoolamike v{data['version']} installed to {data['install_dir']}")
        if data.get("config_created"):
            games = load_config(config_path).get("games") or {}
            if games:
                ctx.ui.info("Detected games:")
                for key, entry in games.items():
                    ctx.ui.info(f"  {key}: {entry['root_directory']}")
            else:
                ctx.ui.warning("No games were detected. Add game paths to the config manually.")
        ctx.ui.info(f"Edit the configuration to finish setup: [blue]{config_path}[/blue]")


def require_binary() -> Path:
    binary = get_hoolamike_dir() / "hoolamike"
    if not binary.is_file():
        raise NakError("Hoolamike is not installed. Please install it first.")
    return binary


def run_hoolamike(ctx, args: List[str]) -> int:
    """Run Hoolamike attached to the terminal, bracketed in the summary log.

    Raises:
        CommandFailedError: On a non-zero exit status
    """
    binary = require_binary()
    summary_log = get_summary_log()
    command = " ".join(args) or "(help)"

    ctx.ui.print_section("Running Hoolamike")
    ctx.ui.info(f"Starting [blue]{command}[/blue] with Hoolamike")
    ctx.ui.warning("This may take a very long time (up to several hours)")

    with summary_log.open("w", encoding="utf-8") as f:
        f.write(f"[{datetime.now()}] Starting hoolamike {command}\n")

    result = ctx.runner.run([str(binary), *args], cwd=binary.parent, capture=False)

    with summary_log.open("a", encoding="utf-8") as f:
        f.write(f"[{datetime.now()}] Hoolamike {command} completed with status {result.returncode}\n")

    if not result.ok:
        raise CommandFailedError(result.argv, result.returncode)
    logger.info(f"Hoolamike execution completed for {command}")
    ctx.ui.success(f"Hoolamike {command} completed successfully!")
    return result.returncode


def fix_modorganizer_paths(install_path: Path) -> List[Path]:
    """Rewrite Windows-style roots in every ModOrganizer.ini under ``install_path``.

    UNC-style roots are mapped onto the Z: drive and download_directory lines
    are dropped. The original is kept next to it as ``.bak``.
    """
    fixed = []
    for ini_file in sorted(install_path.rglob("ModOrganizer.ini")):
        original = ini_file.read_text(encoding="utf-8", errors="replace")
        ini_file.with_name(ini_file.name + ".bak").write_text(original, encoding="utf-8")

        text = original.replace("//", "Z:/").replace("/\\\\", "Z:\\\\")
        lines = [line for line in text.splitlines(keepends=True) if "download_directory=" not in line]
        ini_file.write_text("".join(lines), encoding="utf-8")
        logger.info(f"Fixed paths in: {ini_file}")
        fixed.append(ini_file)
    return fixed


def install_modlist(ctx) -> None:
    require_binary()
    config = load_config(get_hoolamike_dir() / CONFIG_NAME)
    ctx.ui.print_section("Install Wabbajack Modlist")
    ctx.ui.warning("This option requires a Nexus Mods Premium account for automatic downloads.")
    ctx.ui.info("Find modlists at [blue]https://build.wabbajack.org/authored_files[/blue]")
    if not ctx.ui.confirm_action("Start Wabbajack installation now?", default="n"):
        ctx.ui.info("You can run the installation later by selecting this option again.")
        return

    run_hoolamike(ctx, ["install"])
    fix_installed_modlist(ctx, config)
    ctx.ui.pause()


def fix_installed_modlist(ctx, config: Dict[str, Any]) -> None:
    """Fix ModOrganizer.ini files under the configured installation path."""
    install_path = (config.get("installation") or {}).get("installation_path")
    if not install_path:
        return
    fixed = fix_modorganizer_paths(Path(install_path).expanduser())
    if fixed:
        ctx.ui.success(f"Fixed paths in {len(fixed)} ModOrganizer.ini file(s)")


def choose_command(ctx) -> Optional[List[str]]:
    options = [
        ("hoolamike", "Show help"),
        ("hoolamike wabbajack <file>", "Install a Wabbajack modlist"),
        ("hoolamike tale-of-two-wastelands", "Install TTW"),
        ("hoolamike --version", "Show version"),
        ("Other custom command", "Type the arguments yourself"),
        ("Back", "Return without running anything"),
    ]
    choice = ctx.ui.display_menu("Available Hoolamike Commands", options)
    if choice == 1:
        return []
    if choice == 2:
        wabbajack_file = ctx.ui.prompt_path("Enter path to Wabbajack file")
        return None if wabbajack_file is None else ["wabbajack", str(wabbajack_file)]
    if choice == 3:
        return ["tale-of-two-wastelands"]
    if choice == 4:
        return ["--version"]
    if choice == 5:
        return prompt_custom_command(ctx)
    return None


def prompt_custom_command(ctx) -> List[str]:
    """Read Hoolamike arguments, re-prompting on unbalanced quotes."""
    while True:
        raw = ctx.ui.prompt_text("Enter custom command")
        try:
            return shlex.split(raw)
        except ValueError as e:
            ctx.console.print(f"[red]Could not parse command: {e}[/red]")


def run_command(ctx) -> None:
    require_binary()
    args = choose_command(ctx)
    if args is None:
        return
    ctx.ui.info(f"Running: [blue]hoolamike {shlex.join(args)}[/blue]")
    if ctx.ui.confirm_action("Execute this command?"):
        run_hoolamike(ctx, args)
        if args and args[0] in MODLIST_COMMANDS:
            fix_installed_modlist(ctx, load_config(get_hoolamike_dir() / CONFIG_NAME))
        ctx.ui.pause()
    else:
        ctx.ui.info("Command cancelled.")


def show_config(ctx) -> None:
    path = get_hoolamike_dir() / CONFIG_NAME
    config = load_config(path)
    ctx.ui.print_section(str(path))
    ctx.console.print(yaml.safe_dump(config, sort_keys=False), markup=False, highlight=False)
    ctx.ui.pause()


def run_menu(ctx) -> None:
    def before_menu():
        version = ctx.config_store.get("hoolamike_version")
        if version:
            ctx.ui.info(f"Installed Hoolamike version: [green]{version}[/green]")
        else:
            ctx.ui.info("Hoolamike is not installed.")

    def download():
        state = WizardRunner(ctx).run(DownloadHoolamikeWizard())
        ctx.ui.pause()
        return state

    handlers = {
        HoolamikeAction.DOWNLOAD: download,
        HoolamikeAction.INSTALL_MODLIST: lambda: install_modlist(ctx),
        HoolamikeAction.RUN_COMMAND: lambda: run_command(ctx),
        HoolamikeAction.SHOW_CONFIG: lambda: show_config(ctx),
    }
    run_submenu(ctx, "Hoolamike Tools", MENU, handlers, before_menu=before_menu)
