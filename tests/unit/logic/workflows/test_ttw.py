"""Unit tests for the Tale of Two Wastelands workflow."""

from unittest.mock import Mock, patch

import pytest

from nak.lib.exceptions import NakError, SteamNotFoundError
from nak.logic.workflows import hoolamike, ttw

pytestmark = pytest.mark.unit


@pytest.fixture
def hoolamike_dir(fake_home):
    path = fake_home / "Hoolamike"
    path.mkdir()
    return path


@pytest.fixture
def ctx(app_context):
    app_context.steam = Mock()
    app_context.steam.find_game_directory.return_value = None
    return app_context


class TestFindMpiFile:
    """Test MPI file lookup."""

    def test_first_by_name(self, temp_dir):
        (temp_dir / "TTW_3.4.mpi").write_text("")
        (temp_dir / "TTW_3.3.mpi").write_text("")
        (temp_dir / "notes.txt").write_text("")

        assert ttw.find_mpi_file(temp_dir) == temp_dir / "TTW_3.3.mpi"

    def test_none(self, temp_dir):
        assert ttw.find_mpi_file(temp_dir) is None
        assert ttw.find_mpi_file(temp_dir / "missing") is None


class TestOutputDir:
    """Test the TTW destination lookup."""

    def test_default_without_config(self, hoolamike_dir):
        assert ttw.ttw_output_dir(hoolamike_dir) == hoolamike_dir / "TTW_Output"

    def test_relative_destination(self, hoolamike_dir):
        hoolamike.write_config(hoolamike_dir / hoolamike.CONFIG_NAME, {
            "extras": {"tale_of_two_wastelands": {"variables": {"DESTINATION": "./TTW_Output"}}},
        })

        assert ttw.ttw_output_dir(hoolamike_dir) == hoolamike_dir / "TTW_Output"

    def test_absolute_destination(self, hoolamike_dir, temp_dir):
        hoolamike.write_config(hoolamike_dir / hoolamike.CONFIG_NAME, {
            "extras": {"tale_of_two_wastelands": {"variables": {"DESTINATION": str(temp_dir / "TTW")}}},
        })

        assert ttw.ttw_output_dir(hoolamike_dir) == temp_dir / "TTW"


class TestCheckInstallation:
    """Test TTW detection."""

    def test_marker_in_output(self, ctx, hoolamike_dir):
        (hoolamike_dir / "TTW_Output").mkdir()
        (hoolamike_dir / "TTW_Output" / ttw.TTW_MARKER).write_text("")

        assert ttw.check_ttw_installation(ctx)

    def test_marker_in_fnv_data(self, ctx, hoolamike_dir, temp_dir):
        fnv = temp_dir / "Fallout New Vegas"
        (fnv / "Data").mkdir(parents=True)
        (fnv / "Data" / ttw.TTW_MARKER).write_text("")
        ctx.steam.find_game_directory.return_value = fnv

        assert ttw.check_ttw_installation(ctx)

    def test_not_installed(self, ctx, hoolamike_dir):
        assert not ttw.check_ttw_installation(ctx)

    def test_missing_steam(self, ctx, hoolamike_dir):
        ctx.steam.find_game_directory.side_effect = SteamNotFoundError([])

        assert not ttw.check_ttw_installation(ctx)


class TestWaitForMpiFile:
    """Test polling for the MPI file."""

    def test_returns_when_file_appears(self, ctx, hoolamike_dir, fake_clock):
        def sleep(seconds):
            fake_clock.advance(seconds)
            (hoolamike_dir / "TTW_3.4.mpi").write_text("")

        mpi_file = ttw.wait_for_mpi_file(ctx, sleep=sleep, clock=fake_clock)

        assert mpi_file == hoolamike_dir / "TTW_3.4.mpi"
        assert "Detected MPI file: TTW_3.4.mpi" in ctx.console.file.getvalue()

    def test_times_out(self, ctx, hoolamike_dir, fake_clock):
        with pytest.raises(NakError, match="Timed out"):
            ttw.wait_for_mpi_file(ctx, timeout=5, poll_interval=1, sleep=fake_clock.advance, clock=fake_clock)

    def test_declining_to_wait(self, ctx, hoolamike_dir, scripted_input):
        scripted_input.feed("n")

        assert ttw.ensure_mpi_file(ctx) is False
        assert "No TTW MPI file detected." in ctx.console.file.getvalue()


class TestRunInstallation:
    """Test the installation entry points."""

    def test_requires_hoolamike(self, ctx, hoolamike_dir):
        with pytest.raises(NakError, match="not installed"):
            ttw.run_installation(ctx)

    def test_runs_ttw_command(self, ctx, hoolamike_dir, scripted_input):
        (hoolamike_dir / "hoolamike").write_text("#!/bin/sh\n")
        (hoolamike_dir / "TTW_3.4.mpi").write_text("")
        scripted_input.feed("")

        with patch.object(ttw, "run_hoolamike") as run:
            ttw.run_installation(ctx)

        run.assert_called_once_with(ctx, ["tale-of-two-wastelands"])

    def test_automated_setup_declined(self, ctx, scripted_input):
        scripted_input.feed("n")

        assert ttw.automated_setup(ctx) is False
        assert "Setup cancelled." in ctx.console.file.getvalue()

    def test_automated_setup_runs_every_step(self, ctx, hoolamike_dir, scripted_input):
        (hoolamike_dir / "hoolamike").write_text("#!/bin/sh\n")
        (hoolamike_dir / "TTW_3.4.mpi").write_text("")
        ctx.downloader = Mock()
        # Start setup, begin installation, final pause
        scripted_input.feed("y", "y", "")

        with patch.object(ttw, "install_fnv_dependencies") as deps, \
                patch.object(ttw, "run_hoolamike") as run:
            assert ttw.automated_setup(ctx) is True

        deps.assert_called_once_with(ctx)
        run.assert_called_once_with(ctx, ["tale-of-two-wastelands"])
        output = ctx.console.file.getvalue()
        assert "Hoolamike already installed" in output
        assert "TTW MPI file found" in output
