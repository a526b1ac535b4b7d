"""Non-Steam game shortcuts stored in Steam's binary ``shortcuts.vdf``.

Each Steam user has its own ``userdata/<id>/config/shortcuts.vdf``. Entries
live under the top-level ``shortcuts`` key, indexed by stringified integers.
"""

import struct
import time
import zlib
from pathlib import Path
from typing import Any, Dict, List, Optional

import vdf

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NakError
from nak.services.steam_service import SteamService

logger = get_logger(__name__)

SHORTCUTS_FILE = "shortcuts.vdf"


def shortcut_appid(exe: str, name: str) -> int:
    """Steam's id for a non-Steam shortcut: CRC32 of exe + name with the top bit set."""
    return zlib.crc32(f"{exe}{name}".encode("utf-8")) | 0x80000000


def to_signed32(value: int) -> int:
    """Binary VDF stores ``appid`` as a signed 32-bit integer."""
    return value - (1 << 32) if value >= (1 << 31) else value


class SteamShortcuts:
    """Read and update shortcuts.vdf for every Steam user."""

    def __init__(self, steam: SteamService, clock=time.time):
        self.steam = steam
        self.clock = clock

    def shortcut_files(self) -> List[Path]:
        """``shortcuts.vdf`` path of every Steam user, existing or not.

        Raises:
            NakError: If Steam has no user directories yet
        """
        userdata = self.steam.get_steam_root() / "userdata"
        users = sorted(p for p in userdata.iterdir() if p.is_dir()) if userdata.is_dir() else []
        if not users:
            raise NakError(
                f"No Steam user directories found in {userdata}",
                {"hint": "Log in to Steam at least once"}
            )
        return [user / "config" / SHORTCUTS_FILE for user in users]

    @staticmethod
    def load(path: Path) -> Dict[str, Any]:
        """Parse ``path``; a missing file yields an empty shortcut table.

        Raises:
            NakError: If the file exists but is not valid binary VDF
        """
        if not path.exists():
            return {"shortcuts": {}}
        try:
            with path.open("rb") as f:
                data = vdf.binary_load(f)
        except (SyntaxError, ValueError, struct.error) as e:
            raise NakError(f"Could not read {path}: {e}") from e
        data.setdefault("shortcuts", {})
        return data

    @staticmethod
    def save(path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as f:
            vdf.binary_dump(data, f)
        logger.info(f"Wrote {path}")

    @staticmethod
    def find(data: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
        """Return the shortcut named ``name``, if any."""
        for shortcut in data.get("shortcuts", {}).values():
            if shortcut.get("AppName") == name:
                return shortcut
        return None

    def build_entry(self, name: str, exe: Path, start_dir: Path, icon: str = "") -> Dict[str, Any]:
        quoted_exe = f'"{exe}"'
        return {
            "appid": to_signed32(shortcut_appid(quoted_exe, name)),
            "AppName": name,
            "Exe": quoted_exe,
            "StartDir": f'"{start_dir}"',
            "icon": icon,
            "ShortcutPath": "",
            "LaunchOptions": "",
            "IsHidden": 0,
            "AllowDesktopConfig": 1,
            "AllowOverlay": 1,
            "OpenVR": 0,
            "LastPlayTime": int(self.clock()),
            "tags": {},
        }

    def add_entry(self, data: Dict[str, Any], entry: Dict[str, Any]) -> bool:
        """Append ``entry`` after the highest index. False if the name is taken."""
        shortcuts = data.setdefault("shortcuts", {})
        if self.find(data, entry["AppName"]) is not None:
            return False
        indexes = [int(key) for key in shortcuts if str(key).isdecimal()]
        shortcuts[str(max(indexes) + 1 if indexes else 0)] = entry
        return True
