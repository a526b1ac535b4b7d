"""Download a GitHub release asset and install it into a directory."""

import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import DownloadError, NakError, UserAbort
from nak.services.dependency_checker import check_disk_space

from .runner import Wizard

logger = get_logger(__name__)


class ReleaseInstallWizard(Wizard):
    """Fetch the latest release, extract it and move it into place.

    Extraction happens in a staging directory; only the move into the
    install directory touches user files, and every moved entry registers
    its own rollback.
    """

    repository = ""
    asset_pattern = ""
    asset_flags = 0
    product = ""
    default_dir = ""
    required_mb = 1024
    help_text = "Check your internet connection and that curl or wget is installed."

    def collect(self, ctx) -> Dict[str, Any]:
        ctx.downloader.client()
        ctx.ui.info("Fetching latest release information from GitHub...")
        release = ctx.downloader.latest_release(self.repository)
        asset = ctx.downloader.find_asset(release, self.asset_pattern, self.asset_flags)
        if asset is None:
            raise DownloadError(
                f"Could not find a suitable {self.product} asset in the latest release",
                f"https://github.com/{self.repository}/releases/latest"
            )
        filename, url = asset
        version = str(release["tag_name"]).lstrip("v")
        ctx.ui.info(f"Latest version: [green]{version}[/green]")

        install_dir = self.choose_install_dir(ctx)
        if not check_disk_space(install_dir, self.required_mb):
            raise NakError(f"Not enough free disk space at {install_dir} ({self.required_mb} MB required)")

        return {"version": version, "filename": filename, "url": url, "install_dir": install_dir}

    def choose_install_dir(self, ctx) -> Path:
        """Ask for the target directory and confirm reuse of a non-empty one."""
        install_dir = ctx.ui.prompt_directory("Install to directory", str(Path(self.default_dir).expanduser()))
        if install_dir is None:
            raise UserAbort()
        if install_dir.is_dir() and any(install_dir.iterdir()):
            self.handle_existing(ctx, install_dir)
        return install_dir

    def handle_existing(self, ctx, install_dir: Path) -> None:
        """Decide what to do with a non-empty target directory."""
        ctx.ui.warning(f"{install_dir} is not empty; existing files may be replaced.")
        if not ctx.ui.confirm_action("Continue anyway?", default="n"):
            raise UserAbort()

    def summary(self, data: Dict[str, Any]) -> List[str]:
        return [
            f"Install {self.product} v{data['version']}",
            f"From: [blue]{data['url']}[/blue]",
            f"To: [blue]{data['install_dir']}[/blue]",
        ]

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        tracker = ctx.progress()
        tracker.start(f"Installing {self.product}", total=100)

        try:
            download_dir = ctx.temp_files.create_dir()
            archive = ctx.downloader.download(data["url"], download_dir / data["filename"])
            tracker.update(50)

            staging = ctx.temp_files.create_dir()
            ctx.extractor.extract(archive, staging)
            tracker.update(70)

            self.install_from_staging(ctx, staging, data["install_dir"])
            tracker.update(90)

            self.verify(ctx, data)
            self.post_install(ctx, data)
            tracker.update(100)
        except Exception:
            tracker.finish(False)
            raise
        tracker.finish(True)

    def install_from_staging(self, ctx, staging: Path, install_dir: Path) -> None:
        """Move staged files into ``install_dir`` with per-entry rollback."""
        if not install_dir.exists():
            install_dir.mkdir(parents=True)
            ctx.transactions.add_rollback_action(
                lambda: shutil.rmtree(install_dir, ignore_errors=True), f"remove {install_dir}"
            )

        backup_dir: Optional[Path] = None
        for entry in sorted(staging.iterdir()):
            target = install_dir / entry.name
            if target.exists():
                if backup_dir is None:
                    backup_dir = ctx.temp_files.create_dir()
                backup = backup_dir / entry.name
                shutil.move(str(target), str(backup))
                ctx.transactions.add_rollback_action(
                    _restore(backup, target), f"restore {target}"
                )
            shutil.move(str(entry), str(target))
            ctx.transactions.add_rollback_action(_remove(target), f"remove {target}")

        logger.info(f"Installed {self.product} files into {install_dir}")

    def verify(self, ctx, data: Dict[str, Any]) -> None:
        """Raise if the installed tree is not usable."""

    def post_install(self, ctx, data: Dict[str, Any]) -> None:
        """Hook for settings updates after files are in place."""


def _remove(path: Path):
    def remove():
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    return remove


def _restore(backup: Path, target: Path):
    def restore():
        shutil.move(str(backup), str(target))
    return restore
