"""Proton prefix operations shared by the mod manager workflows.

Game selection, dependency installation, DPI scaling and nxm:// handler
registration. Each multi-step operation is a Wizard so failures roll back.
"""

import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import CommandFailedError, NakError, UserAbort
from nak.lib.paths import get_applications_dir, get_mimeapps_list
from nak.logic.wizard import Wizard, WizardRunner
from nak.models.game import DOTNET9, Game, get_game_components
from nak.models.wizard_state import WizardPhase

logger = get_logger(__name__)

DPI_PRESETS = (
    ("96", "Standard 100% scaling"),
    ("120", "125% scaling"),
    ("144", "150% scaling"),
    ("192", "200% scaling"),
)
DPI_MIN = 96
DPI_MAX = 240

DOTNET9_URL = "https://builds.dotnet.microsoft.com/dotnet/Sdk/9.0.203/dotnet-sdk-9.0.203-win-x64.exe"

NXM_SCHEMES = {
    "mo2": ("x-scheme-handler/nxm",),
    "vortex": ("x-scheme-handler/nxm", "x-scheme-handler/nxm-protocol"),
}
NXM_DESKTOP_FILES = {
    "mo2": "modorganizer2-nxm-handler.desktop",
    "vortex": "vortex-nxm-handler.desktop",
}


def select_game(ctx, non_steam_only: bool = False, title: str = "Select a Game") -> Optional[Game]:
    """List games known to protontricks and let the user pick one.

    Returns None when the user backs out.

    Raises:
        NakError: If protontricks is missing, fails, or finds no games
    """
    ctx.ui.info("Scanning for games...")
    games = ctx.protontricks.list_games()
    if non_steam_only:
        games = [g for g in games if g.non_steam]
    if not games:
        kind = "non-Steam games" if non_steam_only else "games"
        raise NakError(
            f"No {kind} found. Add them to Steam and launch them once through Proton first."
        )

    index = ctx.ui.select_from_list(title, [g.label for g in games])
    if index == 0:
        return None
    game = games[index - 1]
    logger.info(f"Selected game: {game.name} (AppID: {game.appid})")
    return game


def require_game(ctx, game: Optional[Game], non_steam_only: bool = False) -> Game:
    """Return ``game`` or ask for one; UserAbort when the user backs out."""
    if game is not None:
        return game
    selected = select_game(ctx, non_steam_only=non_steam_only)
    if selected is None:
        raise UserAbort()
    return selected


def require_proton(ctx) -> Path:
    proton = ctx.steam.find_proton_path()
    if proton is None:
        raise NakError("Proton - Experimental not found in Steam libraries. Make sure it's installed.")
    return proton


def run_with_proton(ctx, prefix: Path, command: str, args: Sequence[str] = ()) -> None:
    """Run a Windows executable inside ``prefix`` with Proton Experimental."""
    proton = require_proton(ctx)
    ctx.runner.run(
        [str(proton), "run", command, *args],
        env=ctx.steam.proton_env(prefix),
        check=True,
    )


def launch_options_advice(ctx, game: Game) -> str:
    """Launch option line pointing a game at its own prefix."""
    compatdata = ctx.steam.find_game_compatdata(game.appid)
    path = compatdata if compatdata else f"<steam>/steamapps/compatdata/{game.appid}"
    return f'STEAM_COMPAT_DATA_PATH="{path}" %command%'


class InstallDependenciesWizard(Wizard):
    """Install winetricks components (and .NET 9) into a game's prefix."""

    title = "Install Proton Dependencies"
    help_text = "Make sure the game has been launched once through Proton, then try again."

    def __init__(self, game: Optional[Game] = None):
        self.game = game

    def collect(self, ctx) -> Dict[str, Any]:
        game = require_game(ctx, self.game)
        components = get_game_components(game.appid)
        ctx.protontricks.command()
        return {"game": game, "components": components}

    def summary(self, data: Dict[str, Any]) -> List[str]:
        lines = [f"Installing dependencies for [blue]{data['game'].name}[/blue]", "Components to install:"]
        lines.extend(f"- {component}" for component in data["components"])
        return lines

    def confirm_prompt(self, data: Dict[str, Any]) -> str:
        return "Continue with installation?"

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        game: Game = data["game"]
        components = [c for c in data["components"] if c != DOTNET9]

        tracker = ctx.progress()
        tracker.start(f"Installing components for {game.name}", total=2)
        log_path = ctx.temp_files.create_file(suffix=".log")
        result = ctx.protontricks.install_components(game.appid, components, log_path)
        if not result.ok:
            tracker.finish(False)
            ctx.ui.warning("Installation may be partially completed. Last output:")
            for line in result.stdout.splitlines()[-10:]:
                ctx.console.print(line, markup=False, highlight=False)
            raise CommandFailedError(result.argv, result.returncode, result.stdout)
        tracker.update(1)

        if DOTNET9 in data["components"]:
            prefix = ctx.steam.find_game_prefix(game.appid)
            install_dotnet9(ctx, prefix)
        tracker.update(2)
        tracker.finish(True)

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success(f"Dependencies installed for {data['game'].name}.")


def install_dotnet9(ctx, prefix: Path) -> None:
    """Download the .NET 9 SDK installer and run it silently in ``prefix``."""
    ctx.ui.info("Installing .NET 9 SDK...")
    filename = DOTNET9_URL.rsplit("/", 1)[-1]
    download_dir = ctx.temp_files.create_dir()
    installer = ctx.downloader.download(DOTNET9_URL, download_dir / filename)

    target_dir = prefix / "drive_c" / "temp"
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename
    shutil.copy2(installer, target)
    ctx.transactions.add_rollback_action(lambda: target.unlink(missing_ok=True), f"remove {target}")

    try:
        run_with_proton(ctx, prefix, f"C:\\temp\\{filename}", ["/q"])
    finally:
        target.unlink(missing_ok=True)


def choose_scaling(ctx) -> str:
    """Ask for a DPI value; presets or a custom value in range."""
    options = [(f"{value} DPI", description) for value, description in DPI_PRESETS]
    options.append(("Custom", f"Enter a value between {DPI_MIN} and {DPI_MAX}"))
    choice = ctx.ui.display_menu("Select DPI Scaling", options)
    if choice <= len(DPI_PRESETS):
        return DPI_PRESETS[choice - 1][0]

    while True:
        raw = ctx.ui.prompt_text(f"Enter custom DPI value ({DPI_MIN}-{DPI_MAX})")
        if raw.isdecimal() and DPI_MIN <= int(raw) <= DPI_MAX:
            return raw
        ctx.console.print(f"[red]Invalid value. Enter a number between {DPI_MIN} and {DPI_MAX}.[/red]")


class DpiScalingWizard(Wizard):
    """Write LogPixels into a prefix registry through a batch file."""

    title = "Configure DPI Scaling"

    def __init__(self, game: Optional[Game] = None):
        self.game = game

    def collect(self, ctx) -> Dict[str, Any]:
        game = require_game(ctx, self.game, non_steam_only=True)
        prefix = ctx.steam.find_game_prefix(game.appid)
        scaling = choose_scaling(ctx)
        return {"game": game, "prefix": prefix, "scaling": scaling}

    def summary(self, data: Dict[str, Any]) -> List[str]:
        return [
            f"Applying [green]{data['scaling']} DPI[/green] scaling to [blue]{data['game'].name}[/blue]",
            f"Prefix: {data['prefix']}",
        ]

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        prefix: Path = data["prefix"]
        scaling = data["scaling"]

        batch_file = prefix / "drive_c" / "temp_dpi.bat"
        batch_file.parent.mkdir(parents=True, exist_ok=True)
        batch_file.write_text(
            "@echo off\r\n"
            f'reg add "HKCU\\Control Panel\\Desktop" /v LogPixels /t REG_DWORD /d {scaling} /f\r\n'
            f'reg add "HKCU\\Software\\Wine\\X11 Driver" /v LogPixels /t REG_DWORD /d {scaling} /f\r\n'
            "exit 0\r\n",
            encoding="utf-8"
        )
        ctx.transactions.add_rollback_action(lambda: batch_file.unlink(missing_ok=True), f"remove {batch_file}")

        try:
            run_with_proton(ctx, prefix, "C:\\temp_dpi.bat")
        finally:
            batch_file.unlink(missing_ok=True)

        previous = ctx.config_store.get("default_scaling", "96")
        ctx.config_store.set("default_scaling", scaling)
        ctx.transactions.add_rollback_action(
            lambda: ctx.config_store.set("default_scaling", previous), "restore default_scaling"
        )

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success("DPI scaling successfully applied!")
        ctx.ui.info("Restart your mod manager for changes to take effect.")
        if ctx.cached_values.show_advice:
            ctx.ui.info("Tip: for most modern monitors a value between 120 and 144 works well.")


def register_mime_handler(ctx, desktop_name: str, schemes: Sequence[str]) -> None:
    """Point ``schemes`` at ``desktop_name`` via xdg-mime or mimeapps.list."""
    mimeapps = get_mimeapps_list()
    backup = mimeapps.read_text(encoding="utf-8") if mimeapps.exists() else None

    def restore_mimeapps():
        if backup is None:
            mimeapps.unlink(missing_ok=True)
        else:
            mimeapps.write_text(backup, encoding="utf-8")

    ctx.transactions.add_rollback_action(restore_mimeapps, f"restore {mimeapps}")

    for scheme in schemes:
        if _has_xdg_mime() and ctx.runner.run(["xdg-mime", "default", desktop_name, scheme]).ok:
            ctx.ui.success(f"Registered {scheme} (via xdg-mime)")
            continue
        _write_mimeapps_entry(mimeapps, scheme, desktop_name)
        ctx.ui.success(f"Registered {scheme} (manual mimeapps.list entry)")


def _has_xdg_mime() -> bool:
    return shutil.which("xdg-mime") is not None


def _write_mimeapps_entry(mimeapps: Path, scheme: str, desktop_name: str) -> None:
    lines = mimeapps.read_text(encoding="utf-8").splitlines() if mimeapps.exists() else []
    lines = [line for line in lines if not line.startswith(f"{scheme}=")]
    lines.append(f"{scheme}={desktop_name}")
    mimeapps.parent.mkdir(parents=True, exist_ok=True)
    mimeapps.write_text("\n".join(lines) + "\n", encoding="utf-8")


def remove_mimeapps_entries(mimeapps: Path, desktop_names: Sequence[str]) -> int:
    """Drop lines that point at any of ``desktop_names``. Returns lines removed."""
    if not mimeapps.exists():
        return 0
    lines = mimeapps.read_text(encoding="utf-8").splitlines()
    kept = [line for line in lines if not any(line.endswith(name) for name in desktop_names)]
    if len(kept) != len(lines):
        mimeapps.write_text("\n".join(kept) + "\n", encoding="utf-8")
    return len(lines) - len(kept)


class NxmHandlerWizard(Wizard):
    """Register a mod manager as the nxm:// link handler."""

    help_text = "Check that Proton Experimental is installed and the executable path is correct."

    def __init__(self, manager: str, executable: Optional[Path] = None, game: Optional[Game] = None):
        if manager not in NXM_DESKTOP_FILES:
            raise ValueError(f"Unknown mod manager: {manager}")
        self.manager = manager
        self.executable = executable
        self.game = game
        self.title = f"{'Mod Organizer 2' if manager == 'mo2' else 'Vortex'} NXM Handler Setup"

    def _ask_executable(self, ctx) -> Path:
        exe_name = "nxmhandler.exe" if self.manager == "mo2" else "Vortex.exe"
        while True:
            path = ctx.ui.prompt_path(f"Enter FULL path to {exe_name}")
            if path is None:
                raise UserAbort()
            if path.is_file():
                return path
            ctx.console.print("[red]File not found![/red] Try again or enter 'b' to go back.")
            logger.warning(f"Invalid path: {path}")

    def collect(self, ctx) -> Dict[str, Any]:
        game = require_game(ctx, self.game, non_steam_only=True)
        proton = require_proton(ctx)
        executable = self.executable or self._ask_executable(ctx)
        compatdata = ctx.steam.find_game_compatdata(game.appid)
        if compatdata is None:
            raise NakError(f"No Proton prefix found for {game.name}. Launch it once from Steam first.")
        return {
            "game": game,
            "proton": proton,
            "executable": executable,
            "compatdata": compatdata,
            "steam_root": ctx.steam.get_steam_root(),
        }

    def summary(self, data: Dict[str, Any]) -> List[str]:
        return [
            f"Game prefix: {data['game'].name} (AppID: {data['game'].appid})",
            f"Executable: {data['executable']}",
            f"Proton: {data['proton']}",
        ]

    def desktop_entry(self, data: Dict[str, Any]) -> str:
        name = "Mod Organizer 2 NXM Handler" if self.manager == "mo2" else "Vortex NXM Handler"
        extra_arg = ' "-d"' if self.manager == "vortex" else ""
        mime_types = ";".join(NXM_SCHEMES[self.manager]) + ";"
        return (
            "[Desktop Entry]\n"
            "Type=Application\n"
            "Categories=Game;\n"
            f"Exec=bash -c 'env \"STEAM_COMPAT_CLIENT_INSTALL_PATH={data['steam_root']}\" "
            f"\"STEAM_COMPAT_DATA_PATH={data['compatdata']}\" \"{data['proton']}\" run "
            f"\"{data['executable']}\"{extra_arg} \"%u\"'\n"
            f"Name={name}\n"
            f"MimeType={mime_types}\n"
            "NoDisplay=true\n"
        )

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        desktop_name = NXM_DESKTOP_FILES[self.manager]
        desktop_file = get_applications_dir() / desktop_name
        previous = desktop_file.read_text(encoding="utf-8") if desktop_file.exists() else None

        def restore_desktop_file():
            if previous is None:
                desktop_file.unlink(missing_ok=True)
            else:
                desktop_file.write_text(previous, encoding="utf-8")

        desktop_file.parent.mkdir(parents=True, exist_ok=True)
        ctx.transactions.add_rollback_action(restore_desktop_file, f"restore {desktop_file}")
        desktop_file.write_text(self.desktop_entry(data), encoding="utf-8")
        desktop_file.chmod(0o755)
        logger.info(f"Created desktop file: {desktop_file}")

        register_mime_handler(ctx, desktop_name, NXM_SCHEMES[self.manager])

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success("NXM handler setup complete!")
        ctx.ui.info("Clicking 'Mod Manager Download' on Nexus Mods now opens the handler.")


def remove_nxm_handlers(ctx) -> int:
    """Delete NaK's nxm desktop files and their mimeapps.list entries."""
    removed = 0
    for desktop_name in NXM_DESKTOP_FILES.values():
        desktop_file = get_applications_dir() / desktop_name
        if desktop_file.exists():
            desktop_file.unlink()
            removed += 1
            logger.info(f"Removed {desktop_file}")
    removed += remove_mimeapps_entries(get_mimeapps_list(), list(NXM_DESKTOP_FILES.values()))
    return removed



def show_add_to_steam_steps(ctx, executable: Path) -> None:
    """Explain how to add the executable to Steam as a non-Steam game."""
    ctx.ui.print_section("Add to Steam")
    ctx.ui.info("1. In Steam, choose 'Games' > 'Add a Non-Steam Game to My Library'")
    ctx.ui.info(f"2. Browse to [blue]{executable}[/blue] and add it")
    ctx.ui.info("3. In its Properties > Compatibility, force 'Proton Experimental'")
    ctx.ui.info("4. Launch it once so Steam creates its Proton prefix")
    ctx.ui.info("5. Come back to NaK to install dependencies and the NXM handler")


class AddToSteamWizard(Wizard):
    """Write a non-Steam shortcut into every Steam user's shortcuts.vdf.

    Each file is copied to ``shortcuts.vdf.bak`` before it is rewritten and
    the copy is restored on rollback.
    """

    title = "Add to Steam"
    help_text = "Log in to Steam once so it creates its userdata directory, then try again."

    def __init__(self, executable: Path, default_name: str):
        self.executable = executable
        self.default_name = default_name

    def collect(self, ctx) -> Dict[str, Any]:
        name = ctx.ui.prompt_text("Name in Steam", self.default_name)
        files = ctx.shortcuts.shortcut_files()
        if ctx.steam.is_running():
            ctx.ui.warning("Steam is running. Close it first or it may overwrite the new shortcut on exit.")
        return {
            "name": name,
            "executable": self.executable,
            "start_dir": self.executable.parent,
            "files": files,
        }

    def summary(self, data: Dict[str, Any]) -> List[str]:
        return [
            f"Adding [blue]{data['name']}[/blue] to Steam",
            f"Executable: {data['executable']}",
            f"Steam users: {len(data['files'])}",
        ]

    def confirm_prompt(self, data: Dict[str, Any]) -> str:
        return f"Add {data['name']} to Steam?"

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        entry = ctx.shortcuts.build_entry(data["name"], data["executable"], data["start_dir"])
        added = 0
        for path in data["files"]:
            shortcuts = ctx.shortcuts.load(path)
            if not ctx.shortcuts.add_entry(shortcuts, entry):
                ctx.ui.info(f"'{data['name']}' is already in {path}")
                continue
            backup_shortcuts(ctx, path)
            ctx.shortcuts.save(path, shortcuts)
            added += 1

        if not added:
            raise NakError(f"'{data['name']}' is already a non-Steam game for every Steam user")
        data["appid"] = entry["appid"] & 0xFFFFFFFF
        logger.info(f"Added {data['name']} to {added} shortcuts.vdf file(s) with AppID {data['appid']}")

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success(f"Successfully added {data['name']} to Steam!")
        ctx.ui.info(f"AppID: [blue]{data['appid']}[/blue]")
        ctx.ui.info("You should now:")
        ctx.ui.info("1. Restart Steam to see the newly added game")
        ctx.ui.info(f"2. Right-click {data['name']} in Steam > Properties")
        ctx.ui.info("3. Check 'Force the use of a specific Steam Play compatibility tool'")
        ctx.ui.info("4. Select 'Proton Experimental' from the dropdown menu")
        ctx.ui.info("5. Launch it once, then set up the NXM handler and DPI scaling from NaK")


def backup_shortcuts(ctx, path: Path) -> None:
    """Register the undo for rewriting ``path``: restore its backup or delete it."""
    if path.exists():
        backup = path.with_name(path.name + ".bak")
        shutil.copy2(path, backup)
        ctx.transactions.add_rollback_action(
            lambda: shutil.copy2(backup, path), f"restore {path} from {backup.name}"
        )
    else:
        ctx.transactions.add_rollback_action(lambda: path.unlink(missing_ok=True), f"remove {path}")


def offer_add_to_steam(ctx, executable: Path, default_name: str) -> None:
    """Add ``executable`` to Steam now, or print the manual steps."""
    if ctx.ui.confirm_action(f"Add {default_name} to Steam now?"):
        state = WizardRunner(ctx).run(AddToSteamWizard(executable, default_name))
        if state.phase == WizardPhase.SUCCESS:
            return
    show_add_to_steam_steps(ctx, executable)
