"""External tool collaborators.

Thin wrappers around the commands NaK drives: a PATH lookup, a subprocess
runner, curl/wget for downloads, 7-Zip/tar for archives and protontricks.
Every wrapper reports failure through NakError subclasses.
"""

import json
import os
import re
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import (
    CommandFailedError,
    DownloadError,
    ExtractionError,
    ToolNotFoundError,
)
from nak.models.game import Game
from nak.services.progress_reporter import Spinner

logger = get_logger(__name__)

SEVEN_ZIP_TOOLS = ("7z", "7za", "7zr", "p7zip")
TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar.xz", ".tar.bz2", ".tar")
PROTONTRICKS_FLATPAK = "com.github.Matoking.protontricks"
GITHUB_API = "https://api.github.com/repos"


def command_exists(name: str) -> bool:
    """Check whether ``name`` resolves on PATH."""
    return shutil.which(name) is not None


def first_available(names: Sequence[str]) -> Optional[str]:
    """Return the first command of ``names`` that is installed."""
    for name in names:
        if command_exists(name):
            return name
    return None


def require_command(name: str) -> str:
    """Return the resolved path of ``name`` or raise ToolNotFoundError.

    Used as a cached check: a missing tool is a failure and never cached.
    """
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(name)
    return path


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(a)) for a in argv)


@dataclass(frozen=True)
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return (self.stdout + self.stderr).strip()


class CommandRunner:
    """Run external commands with consistent logging."""

    def __init__(self, spinner: Optional[Spinner] = None):
        self.spinner = spinner or Spinner()

    def run(
        self,
        argv: Sequence[str],
        *,
        check: bool = False,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        input_text: Optional[str] = None,
        capture: bool = True
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            argv: Command and arguments
            check: Raise CommandFailedError on a non-zero exit
            env: Extra environment variables
            cwd: Working directory
            input_text: Text sent to stdin
            capture: Capture output; otherwise it goes straight to the terminal
        """
        argv_list = [str(a) for a in argv]
        logger.info(f"CMD {format_argv(argv_list)}")

        try:
            p = subprocess.run(
                argv_list,
                input=input_text,
                text=True,
                encoding="utf-8",
                errors="replace",
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
                cwd=cwd,
                env=dict(os.environ, **(env or {})),
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(argv_list[0]) from e

        stdout = p.stdout or ""
        stderr = p.stderr or ""
        if stdout:
            logger.debug(f"STDOUT {stdout.strip()}")
        if stderr:
            logger.debug(f"STDERR {stderr.strip()}")

        result = CommandResult(argv=argv_list, returncode=p.returncode, stdout=stdout, stderr=stderr)
        if check and not result.ok:
            raise CommandFailedError(argv_list, p.returncode, result.output)
        return result

    def run_with_spinner(
        self,
        argv: Sequence[str],
        message: str,
        log_path: Path,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None
    ) -> CommandResult:
        """Run a long command in the background, spinning until it exits.

        Output is written to ``log_path`` and returned as stdout.
        """
        argv_list = [str(a) for a in argv]
        logger.info(f"CMD (background) {format_argv(argv_list)}")

        with open(log_path, "w", encoding="utf-8") as log_fh:
            try:
                process = subprocess.Popen(
                    argv_list,
                    stdout=log_fh,
                    stderr=subprocess.STDOUT,
                    cwd=cwd,
                    env=dict(os.environ, **(env or {})),
                )
            except FileNotFoundError as e:
                raise ToolNotFoundError(argv_list[0]) from e
            returncode = self.spinner.wait(process, message)

        output = Path(log_path).read_text(encoding="utf-8", errors="replace")
        if returncode != 0:
            logger.error(f"{argv_list[0]} exited with {returncode}")
            logger.debug(output[-4000:])
        return CommandResult(argv=argv_list, returncode=returncode, stdout=output, stderr="")


class Downloader:
    """Fetch URLs through curl, falling back to wget."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def client(self) -> str:
        """Pick the download client."""
        client = first_available(("curl", "wget"))
        if client is None:
            raise ToolNotFoundError("curl", alternatives=["wget"])
        return client

    def fetch_text(self, url: str) -> str:
        """Return the body of ``url``."""
        if self.client() == "curl":
            argv = ["curl", "-fsSL", url]
        else:
            argv = ["wget", "-qO-", url]
        result = self.runner.run(argv)
        if not result.ok:
            raise DownloadError(f"Failed to fetch {url} (exit code {result.returncode})", url)
        return result.stdout

    def fetch_json(self, url: str) -> Any:
        """Return the decoded JSON body of ``url``."""
        text = self.fetch_text(url)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise DownloadError(f"Invalid JSON from {url}: {e}", url) from e

    def download(self, url: str, dest: Path) -> Path:
        """Save ``url`` to ``dest`` and return ``dest``."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        if self.client() == "curl":
            argv = ["curl", "-fL", "-o", str(dest), url]
        else:
            argv = ["wget", "-O", str(dest), url]
        result = self.runner.run(argv, capture=False)
        if not result.ok or not dest.exists():
            raise DownloadError(f"Failed to download {url} (exit code {result.returncode})", url)
        logger.info(f"Downloaded {url} to {dest}")
        return dest

    def latest_release(self, repository: str) -> Dict[str, Any]:
        """GitHub ``releases/latest`` payload for ``owner/name``."""
        release = self.fetch_json(f"{GITHUB_API}/{repository}/releases/latest")
        if not isinstance(release, dict) or "tag_name" not in release:
            raise DownloadError(f"Unexpected release data for {repository}")
        return release

    @staticmethod
    def find_asset(release: Dict[str, Any], pattern: str, flags: int = 0) -> Optional[Tuple[str, str]]:
        """Return ``(name, download_url)`` of the first asset matching ``pattern``."""
        regex = re.compile(pattern, flags)
        for asset in release.get("assets", []):
            name = asset.get("name", "")
            if regex.search(name):
                return name, asset.get("browser_download_url", "")
        return None


class ArchiveExtractor:
    """Expand archives with tar or the first available 7-Zip binary."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def extract(self, archive: Path, dest: Path) -> Path:
        """Extract ``archive`` into ``dest`` and return ``dest``."""
        archive = Path(archive)
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)

        if archive.name.endswith(TAR_SUFFIXES):
            argv = ["tar", "-xf", str(archive), "-C", str(dest)]
        else:
            tool = first_available(SEVEN_ZIP_TOOLS)
            if tool is None:
                raise ToolNotFoundError("7z", alternatives=list(SEVEN_ZIP_TOOLS[1:]))
            argv = [tool, "x", "-y", f"-o{dest}", str(archive)]

        result = self.runner.run(argv)
        if not result.ok:
            raise ExtractionError(
                f"Failed to extract {archive.name} (exit code {result.returncode})", archive
            )
        logger.info(f"Extracted {archive} to {dest}")
        return dest


class ProtontricksRunner:
    """Native or flatpak protontricks."""

    GAME_LINE = re.compile(r"^(?P<name>.+?) \((?P<appid>[0-9]+)\)$")
    NON_STEAM_PREFIX = "Non-Steam shortcut: "

    def __init__(self, runner: CommandRunner):
        self.runner = runner
        self._command: Optional[List[str]] = None

    def command(self) -> List[str]:
        """Resolve the protontricks invocation."""
        if self._command is not None:
            return self._command

        if command_exists("protontricks"):
            self._command = ["protontricks"]
            logger.info("Using native protontricks")
        elif command_exists("flatpak") and self._flatpak_installed():
            self._command = ["flatpak", "run", PROTONTRICKS_FLATPAK]
            logger.info("Using flatpak protontricks")
        else:
            raise ToolNotFoundError("protontricks", alternatives=[PROTONTRICKS_FLATPAK])
        return self._command

    def _flatpak_installed(self) -> bool:
        result = self.runner.run(["flatpak", "list", "--app", "--columns=application"])
        return result.ok and PROTONTRICKS_FLATPAK in result.stdout.split()

    @classmethod
    def parse_game_list(cls, output: str) -> List[Game]:
        """Parse ``protontricks -l`` output into Game records."""
        games = []
        for raw_line in output.splitlines():
            line = raw_line.strip()
            match = cls.GAME_LINE.match(line)
            if not match:
                continue
            name = match.group("name")
            non_steam = name.startswith(cls.NON_STEAM_PREFIX)
            if non_steam:
                name = name[len(cls.NON_STEAM_PREFIX):]
            games.append(Game(appid=match.group("appid"), name=name.strip(), non_steam=non_steam))
        return games

    def list_games(self) -> List[Game]:
        """List games that have a Proton prefix."""
        result = self.runner.run([*self.command(), "-l"])
        if not result.ok:
            raise CommandFailedError(result.argv, result.returncode, result.output)
        games = self.parse_game_list(result.stdout)
        logger.info(f"protontricks reported {len(games)} games")
        return games

    def install_components(self, appid: str, components: Sequence[str], log_path: Path) -> CommandResult:
        """Install winetricks verbs into a game's prefix."""
        argv = [*self.command(), "--no-bwrap", appid, "-q", *components]
        return self.runner.run_with_spinner(argv, f"Installing {len(components)} components", log_path)
