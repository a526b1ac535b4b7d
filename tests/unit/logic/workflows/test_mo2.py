"""Unit tests for the MO2 workflow and the release install wizard."""

from unittest.mock import Mock, patch

import pytest

from nak.lib.exceptions import DownloadError
from nak.logic.wizard import WizardRunner
from nak.logic.workflows import mo2
from nak.models.wizard_state import WizardPhase
from nak.services.system_tools import Downloader

pytestmark = pytest.mark.unit

RELEASE = {
    "tag_name": "v2.5.2",
    "assets": [
        {"name": "Mod.Organizer-2.5.2-pdbs.7z", "browser_download_url": "https://example.invalid/pdbs.7z"},
        {"name": "Mod.Organizer-2.5.2.7z", "browser_download_url": "https://example.invalid/mo2.7z"},
    ],
}


def fake_download(url, dest):
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(b"7z")
    return dest


def extract_files(files):
    def extract(archive, dest):
        for name, content in files.items():
            path = dest / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return dest
    return extract


@pytest.fixture
def ctx(app_context):
    app_context.downloader = Mock()
    app_context.downloader.latest_release.return_value = RELEASE
    app_context.downloader.find_asset = Downloader.find_asset
    app_context.downloader.download.side_effect = fake_download
    app_context.extractor = Mock()
    with patch("nak.logic.workflows.mo2.first_available", return_value="7z"), \
            patch("nak.logic.wizard.release.check_disk_space", return_value=True):
        yield app_context


class TestDownloadMo2:
    """Test download, install and rollback of MO2."""

    def test_fresh_install(self, ctx, scripted_input, temp_dir):
        install_dir = temp_dir / "MO2"
        ctx.extractor.extract.side_effect = extract_files({
            "ModOrganizer.exe": "exe",
            "plugins/game_skyrimse.dll": "dll",
        })
        # Path, confirm install, decline adding to Steam
        scripted_input.feed(str(install_dir), "y", "n")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.SUCCESS
        assert (install_dir / "ModOrganizer.exe").is_file()
        assert (install_dir / "plugins" / "game_skyrimse.dll").is_file()
        ctx.downloader.download.assert_called_once()
        assert ctx.downloader.download.call_args[0][0] == "https://example.invalid/mo2.7z"
        assert "Add a Non-Steam Game" in ctx.console.file.getvalue()

    def test_file_path_is_reprompted(self, ctx, scripted_input, temp_dir):
        not_a_dir = temp_dir / "afile"
        not_a_dir.write_text("x")
        install_dir = temp_dir / "MO2"
        ctx.extractor.extract.side_effect = extract_files({"ModOrganizer.exe": "exe"})
        scripted_input.feed(str(not_a_dir), str(install_dir), "y", "n")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.SUCCESS
        assert "exists and is not a directory" in ctx.console.file.getvalue()
        assert (install_dir / "ModOrganizer.exe").is_file()
        assert not_a_dir.read_text() == "x"

    def test_failed_verification_restores_existing_files(self, ctx, scripted_input, temp_dir):
        install_dir = temp_dir / "MO2"
        install_dir.mkdir()
        (install_dir / "ModOrganizer.ini").write_text("old settings")
        (install_dir / "notes.txt").write_text("keep me")
        ctx.extractor.extract.side_effect = extract_files({"ModOrganizer.ini": "new settings"})
        # Path, continue into non-empty dir, confirm install
        scripted_input.feed(str(install_dir), "y", "y")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.FAILED
        assert "ModOrganizer.exe not found" in state.error
        assert (install_dir / "ModOrganizer.ini").read_text() == "old settings"
        assert (install_dir / "notes.txt").read_text() == "keep me"

    def test_failed_fresh_install_removes_directory(self, ctx, scripted_input, temp_dir):
        install_dir = temp_dir / "MO2"
        ctx.extractor.extract.side_effect = extract_files({"readme.txt": "x"})
        scripted_input.feed(str(install_dir), "y")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.FAILED
        assert not install_dir.exists()

    def test_declining_non_empty_directory_aborts(self, ctx, scripted_input, temp_dir):
        install_dir = temp_dir / "MO2"
        install_dir.mkdir()
        (install_dir / "file").write_text("x")
        scripted_input.feed(str(install_dir), "")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.ABORTED
        ctx.downloader.download.assert_not_called()

    def test_missing_asset(self, ctx):
        ctx.downloader.latest_release.return_value = {"tag_name": "v2.5.2", "assets": []}

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.phase == WizardPhase.ABORTED
        assert "Could not find a suitable Mod Organizer 2 asset" in state.error

    def test_release_lookup_failure(self, ctx):
        ctx.downloader.latest_release.side_effect = DownloadError("rate limited")

        state = WizardRunner(ctx).run(mo2.DownloadMo2Wizard())

        assert state.error == "rate limited"


class TestFindExecutable:
    """Test MO2 executable lookup."""

    def test_top_level(self, temp_dir):
        (temp_dir / "ModOrganizer.exe").write_text("")

        assert mo2.find_mo2_executable(temp_dir) == temp_dir / "ModOrganizer.exe"

    def test_one_level_down(self, temp_dir):
        (temp_dir / "MO2").mkdir()
        (temp_dir / "MO2" / "ModOrganizer.exe").write_text("")

        assert mo2.find_mo2_executable(temp_dir) == temp_dir / "MO2" / "ModOrganizer.exe"

    def test_absent(self, temp_dir):
        assert mo2.find_mo2_executable(temp_dir) is None


class TestSetupExisting:
    """Test adopting an existing MO2 directory."""

    def test_reprompts_until_found(self, app_context, scripted_input, temp_dir):
        good = temp_dir / "MO2"
        good.mkdir()
        (good / "ModOrganizer.exe").write_text("")
        scripted_input.feed(str(temp_dir / "wrong"), str(good), "n", "n")

        mo2.setup_existing(app_context)

        output = app_context.console.file.getvalue()
        assert "not found in" in output
        assert "Found Mod Organizer 2" in output

    def test_back(self, app_context, scripted_input):
        scripted_input.feed("b")

        mo2.setup_existing(app_context)

        assert scripted_input.remaining == 0
