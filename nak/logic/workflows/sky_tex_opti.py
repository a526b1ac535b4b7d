"""Sky Texture Optimizer: download the Linux build and run it on an MO2 profile."""

import stat
from pathlib import Path
from typing import Any, Dict, Optional

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import CommandFailedError, NakError
from nak.lib.paths import get_home, get_nak_data_dir
from nak.logic.wizard import WizardRunner
from nak.logic.wizard.release import ReleaseInstallWizard
from nak.models.wizard_state import WizardPhase

logger = get_logger(__name__)

SKY_TEX_REPOSITORY = "BenHUET/sky-tex-opti"
BUNDLE_DIR = "sky-tex-opti_linux-x64"
BINARY_NAME = "sky-tex-opti"
SETTINGS_FILE = "default.json"


def get_install_dir() -> Path:
    return get_nak_data_dir() / "tools" / "sky-tex-opti"


class DownloadSkyTexOptiWizard(ReleaseInstallWizard):
    """Fetch the latest Linux build into NaK's tools directory.

    The tool always runs from a fresh download, so there is no directory
    prompt and a previous copy is replaced in place.
    """

    title = "Download Sky Texture Optimizer"
    repository = SKY_TEX_REPOSITORY
    asset_pattern = rf"^{BUNDLE_DIR}\.zip$"
    product = "Sky Texture Optimizer"
    required_mb = 256

    def choose_install_dir(self, ctx) -> Path:
        return get_install_dir()

    def install_from_staging(self, ctx, staging: Path, install_dir: Path) -> None:
        bundle = staging / BUNDLE_DIR
        super().install_from_staging(ctx, bundle if bundle.is_dir() else staging, install_dir)

    def verify(self, ctx, data: Dict[str, Any]) -> None:
        binary = data["install_dir"] / BINARY_NAME
        if not binary.is_file():
            raise NakError("Could not find sky-tex-opti executable in the extracted files.")
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        ctx.ui.success(f"Sky Texture Optimizer v{data['version']} has been successfully downloaded!")


def show_info(ctx) -> None:
    ctx.ui.print_section("Sky Texture Optimizer Information")
    ctx.ui.info("[bold]What is Sky Texture Optimizer?[/bold]")
    ctx.ui.info("Sky Texture Optimizer (sky-tex-opti) optimizes Skyrim textures")
    ctx.ui.info("to improve performance while maintaining visual quality.")
    ctx.ui.info("")
    ctx.ui.info("[bold]Usage:[/bold]")
    ctx.ui.info("1. Enter your MO2 profile path, the folder containing modlist.txt:")
    ctx.ui.info("   [blue][MO2 Installation]/profiles/[Your Profile Name][/blue]")
    ctx.ui.info("2. Enter an output directory for the optimized textures")
    ctx.ui.info("3. Wait; this can take a long time with many texture mods")
    ctx.ui.info("")
    ctx.ui.info("[bold]After optimization:[/bold]")
    ctx.ui.info("- Create a new mod in MO2, for example 'Optimized Textures'")
    ctx.ui.info("- Copy the contents of the output directory into it")
    ctx.ui.info("- Place it at the bottom of your load order")
    ctx.ui.warning("The latest version is downloaded each time you run the tool.")
    ctx.ui.pause("Press Enter to continue to the Sky Texture Optimizer...")


def prompt_profile(ctx) -> Optional[Path]:
    """Ask for an MO2 profile directory; re-prompts until it holds modlist.txt."""
    ctx.ui.info(f"Example: [blue]{get_home() / 'ModOrganizer2' / 'profiles' / 'My Skyrim Profile'}[/blue]")
    while True:
        profile = ctx.ui.prompt_path("MO2 profile path")
        if profile is None:
            return None
        if (profile / "modlist.txt").is_file():
            return profile
        ctx.console.print(f"[red]{profile} is not an MO2 profile (no modlist.txt)[/red]")


def run_optimizer(ctx) -> None:
    """Run the downloaded tool on a profile.

    Raises:
        NakError: If the tool is missing or the output directory cannot be created
        CommandFailedError: On a non-zero exit status
    """
    install_dir = get_install_dir()
    binary = install_dir / BINARY_NAME
    if not binary.is_file():
        raise NakError("Failed to download Sky Texture Optimizer.")

    ctx.ui.print_section("Run Sky Texture Optimizer")
    profile = prompt_profile(ctx)
    if profile is None:
        return
    output = ctx.ui.prompt_directory("Output path", str(get_home() / "SkyrimOptimizedTextures"))
    if output is None:
        return
    if not output.exists():
        ctx.ui.info("Output directory doesn't exist. Creating it...")
        try:
            output.mkdir(parents=True)
        except OSError as e:
            raise NakError(f"Failed to create output directory: {output}: {e}") from e

    ctx.ui.warning("This may take a long time depending on the number of mods and textures.")
    result = ctx.runner.run(
        [str(binary), "--profile", str(profile), "--output", str(output), "--settings", SETTINGS_FILE],
        cwd=install_dir,
        capture=False,
    )
    if not result.ok:
        raise CommandFailedError(result.argv, result.returncode)

    logger.info(f"Texture optimization finished: {profile} -> {output}")
    ctx.ui.success("Texture optimization completed successfully!")
    ctx.ui.info(f"Optimized textures are available at: [blue]{output}[/blue]")
    ctx.ui.info("Add that folder to MO2's mods folder; it must be the parent of 'textures'.")
    ctx.ui.pause()


def run_menu(ctx) -> None:
    ctx.ui.print_header(ctx.navigation.breadcrumb())
    show_info(ctx)
    state = WizardRunner(ctx).run(DownloadSkyTexOptiWizard())
    if state.phase is not WizardPhase.SUCCESS:
        return
    run_optimizer(ctx)
