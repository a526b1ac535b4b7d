"""Steam installation discovery.

Finds the Steam root, its library folders, per-game compatdata prefixes
and Proton. The root can be remembered in the config store so later runs
skip the candidate scan.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import PrefixNotFoundError, SteamNotFoundError
from nak.lib.paths import get_home
from nak.services.config_store import ConfigStore

logger = get_logger(__name__)

PROTON_DIR_NAME = "Proton - Experimental"
STEAM_PROCESS_NAMES = ("steam", "steamwebhelper")
LIBRARY_PATH_LINE = re.compile(r'^\s*"path"\s+"(?P<path>[^"]+)"')


def default_steam_candidates() -> List[Path]:
    """Standard Steam install locations, in lookup order."""
    home = get_home()
    return [
        home / ".local" / "share" / "Steam",
        home / ".steam" / "steam",
        home / ".steam" / "debian-installation",
        Path("/usr/local/steam"),
        Path("/usr/share/steam"),
    ]


class SteamService:
    """Locate Steam, its libraries and game prefixes."""

    def __init__(self, config_store: ConfigStore, candidates: Optional[Sequence[Path]] = None):
        """Initialize the service.

        Args:
            config_store: Used for the ``cache_steam_path`` toggle and ``steam_path``
            candidates: Override for the standard install locations
        """
        self.config_store = config_store
        self.candidates = list(candidates) if candidates is not None else default_steam_candidates()

    def get_steam_root(self) -> Path:
        """Return the Steam root directory.

        Raises:
            SteamNotFoundError: If no candidate contains ``steamapps``
        """
        use_cache = self.config_store.get_bool("cache_steam_path", True)
        if use_cache:
            cached = self.config_store.get("steam_path", "")
            if cached and (Path(cached) / "steamapps").is_dir():
                logger.debug(f"Using cached Steam path: {cached}")
                return Path(cached)

        for candidate in self.candidates:
            if (candidate / "steamapps").is_dir():
                logger.info(f"Found Steam root: {candidate}")
                if use_cache:
                    self.config_store.set("steam_path", str(candidate))
                return candidate

        raise SteamNotFoundError(self.candidates)

    @staticmethod
    def parse_library_folders(text: str) -> List[Path]:
        """Extract ``"path"`` values from a text libraryfolders.vdf."""
        paths = []
        for line in text.splitlines():
            match = LIBRARY_PATH_LINE.match(line)
            if match:
                paths.append(Path(match.group("path").replace("\\\\", "\\")))
        return paths

    def library_folders(self) -> List[Path]:
        """Steam root followed by every additional library, deduplicated."""
        root = self.get_steam_root()
        folders = [root]
        vdf = root / "steamapps" / "libraryfolders.vdf"
        if vdf.is_file():
            for path in self.parse_library_folders(vdf.read_text(encoding="utf-8", errors="replace")):
                if path not in folders:
                    folders.append(path)
        return folders

    def find_game_compatdata(self, appid: str) -> Optional[Path]:
        """Return ``steamapps/compatdata/<appid>`` from the first library that has it."""
        for library in self.library_folders():
            compatdata = library / "steamapps" / "compatdata" / appid
            if compatdata.is_dir():
                logger.info(f"Found compatdata for {appid}: {compatdata}")
                return compatdata
        logger.warning(f"No compatdata found for AppID {appid}")
        return None

    def find_game_prefix(self, appid: str) -> Path:
        """Return the ``pfx`` directory of a game's prefix.

        Raises:
            PrefixNotFoundError: If the game was never launched through Proton
        """
        compatdata = self.find_game_compatdata(appid)
        prefix = compatdata / "pfx" if compatdata else None
        if prefix is None or not prefix.is_dir():
            raise PrefixNotFoundError(appid, prefix)
        return prefix

    def find_proton_path(self) -> Optional[Path]:
        """Locate the Proton Experimental launcher script."""
        for library in self.library_folders():
            candidate = library / "steamapps" / "common" / PROTON_DIR_NAME / "proton"
            if candidate.is_file():
                logger.info(f"Found Proton path: {candidate}")
                return candidate
        logger.error("Proton - Experimental not found")
        return None

    def find_game_directory(self, game_dir_name: str) -> Optional[Path]:
        """Return an installed game's directory if it exists and is not empty."""
        for library in self.library_folders():
            candidate = library / "steamapps" / "common" / game_dir_name
            if candidate.is_dir() and any(candidate.iterdir()):
                logger.info(f"Found game directory: {candidate}")
                return candidate
        return None

    def proton_env(self, prefix: Path) -> dict:
        """Environment for running a Windows binary with Proton in ``prefix``."""
        return {
            "STEAM_COMPAT_CLIENT_INSTALL_PATH": str(self.get_steam_root()),
            "STEAM_COMPAT_DATA_PATH": str(prefix.parent),
        }

    @staticmethod
    def is_running() -> bool:
        """Whether a Steam client process is running for any user."""
        for process in psutil.process_iter(["name"]):
            if process.info.get("name") in STEAM_PROCESS_NAMES:
                return True
        return False
