"""Unit tests for the Hoolamike workflow."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import yaml

from nak.lib.exceptions import CommandFailedError, NakError
from nak.logic.workflows import hoolamike
from nak.services.system_tools import CommandResult

pytestmark = pytest.mark.unit


@pytest.fixture
def steam_ctx(app_context, temp_dir):
    common = temp_dir / "steamapps" / "common"
    found = {"Fallout New Vegas", "Skyrim Special Edition"}
    app_context.steam = Mock()
    app_context.steam.find_game_directory.side_effect = (
        lambda name: common / name if name in found else None
    )
    app_context.steam.find_game_compatdata.return_value = temp_dir / "compatdata" / "22380"
    return app_context


class TestDefaultConfig:
    """Test hoolamike.yaml generation."""

    def test_only_detected_games_are_listed(self, steam_ctx, temp_dir):
        config = hoolamike.build_default_config(steam_ctx)

        assert set(config["games"]) == {"FalloutNewVegas", "SkyrimSpecialEdition"}
        assert config["games"]["FalloutNewVegas"]["root_directory"] == str(
            temp_dir / "steamapps" / "common" / "Fallout New Vegas"
        )

    def test_userprofile_points_into_fnv_prefix(self, steam_ctx):
        config = hoolamike.build_default_config(steam_ctx)

        variables = config["extras"]["tale_of_two_wastelands"]["variables"]
        assert variables["USERPROFILE"].endswith("My Games/FalloutNV/")
        assert variables["DESTINATION"] == "./TTW_Output"

    def test_userprofile_omitted_without_prefix(self, steam_ctx):
        steam_ctx.steam.find_game_compatdata.return_value = None

        config = hoolamike.build_default_config(steam_ctx)

        assert "USERPROFILE" not in config["extras"]["tale_of_two_wastelands"]["variables"]

    def test_written_config_loads_back(self, steam_ctx, temp_dir):
        path = temp_dir / "hoolamike.yaml"
        config = hoolamike.build_default_config(steam_ctx)

        hoolamike.write_config(path, config)

        assert path.read_text().startswith("# Auto-generated hoolamike.yaml")
        assert hoolamike.load_config(path) == config


class TestLoadConfig:
    """Test configuration loading errors."""

    def test_missing_file(self, temp_dir):
        with pytest.raises(NakError, match="not found"):
            hoolamike.load_config(temp_dir / "hoolamike.yaml")

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "hoolamike.yaml"
        path.write_text("games: [unclosed\n")

        with pytest.raises(NakError, match="Invalid YAML"):
            hoolamike.load_config(path)

    def test_not_a_mapping(self, temp_dir):
        path = temp_dir / "hoolamike.yaml"
        path.write_text(yaml.safe_dump(["a", "b"]))

        with pytest.raises(NakError, match="mapping"):
            hoolamike.load_config(path)


class TestFixModOrganizerPaths:
    """Test ModOrganizer.ini path rewriting."""

    def test_rewrites_roots_and_drops_download_directory(self, temp_dir):
        profile = temp_dir / "install" / "profiles"
        profile.mkdir(parents=True)
        ini = profile / "ModOrganizer.ini"
        original = (
            "[General]\n"
            "gamePath=@ByteArray(//home/user/Games/Skyrim)\n"
            "download_directory=//home/user/Downloads\n"
            "language=en\n"
        )
        ini.write_text(original)

        fixed = hoolamike.fix_modorganizer_paths(temp_dir / "install")

        assert fixed == [ini]
        assert ini.read_text() == (
            "[General]\n"
            "gamePath=@ByteArray(Z:/home/user/Games/Skyrim)\n"
            "language=en\n"
        )
        assert (profile / "ModOrganizer.ini.bak").read_text() == original

    def test_no_ini_files(self, temp_dir):
        assert hoolamike.fix_modorganizer_paths(temp_dir) == []


class TestRunHoolamike:
    """Test running the binary."""

    @pytest.fixture
    def binary(self, fake_home):
        path = fake_home / "Hoolamike" / "hoolamike"
        path.parent.mkdir()
        path.write_text("#!/bin/sh\n")
        return path

    def test_not_installed(self, app_context):
        with pytest.raises(NakError, match="not installed"):
            hoolamike.run_hoolamike(app_context, ["install"])

    def test_success_writes_summary_log(self, app_context, binary, fake_home):
        app_context.runner = Mock()
        app_context.runner.run.return_value = CommandResult([str(binary), "install"], 0, "", "")

        assert hoolamike.run_hoolamike(app_context, ["install"]) == 0

        app_context.runner.run.assert_called_once_with(
            [str(binary), "install"], cwd=binary.parent, capture=False
        )
        summary = (fake_home / "hoolamike_summary.log").read_text()
        assert "Starting hoolamike install" in summary
        assert "completed with status 0" in summary

    def test_failure_raises(self, app_context, binary):
        app_context.runner = Mock()
        app_context.runner.run.return_value = CommandResult([str(binary), "install"], 2, "", "")

        with pytest.raises(CommandFailedError):
            hoolamike.run_hoolamike(app_context, ["install"])


class TestRunCommand:
    """Test the custom command runner."""

    @pytest.fixture
    def installed(self, fake_home, temp_dir):
        hoolamike_dir = fake_home / "Hoolamike"
        hoolamike_dir.mkdir()
        (hoolamike_dir / "hoolamike").write_text("#!/bin/sh\n")
        modlist = temp_dir / "modlist"
        (modlist / "profiles").mkdir(parents=True)
        (modlist / "profiles" / "ModOrganizer.ini").write_text("gamePath=//home/user/Skyrim\n")
        hoolamike.write_config(
            hoolamike_dir / hoolamike.CONFIG_NAME,
            {"installation": {"installation_path": str(modlist)}},
        )
        return modlist

    def test_unbalanced_quotes_are_reprompted(self, app_context, scripted_input):
        scripted_input.feed('install "unterminated', "install --verbose")

        assert hoolamike.prompt_custom_command(app_context) == ["install", "--verbose"]
        assert "Could not parse command" in app_context.console.file.getvalue()

    def test_wabbajack_command_fixes_modlist_paths(self, app_context, scripted_input, installed):
        scripted_input.feed("y", "")

        with patch.object(hoolamike, "choose_command", return_value=["wabbajack", "list.wabbajack"]), \
                patch.object(hoolamike, "run_hoolamike", return_value=0) as run:
            hoolamike.run_command(app_context)

        run.assert_called_once_with(app_context, ["wabbajack", "list.wabbajack"])
        ini = installed / "profiles" / "ModOrganizer.ini"
        assert ini.read_text() == "gamePath=Z:/home/user/Skyrim\n"

    def test_other_commands_leave_modlist_alone(self, app_context, scripted_input, installed):
        scripted_input.feed("y", "")

        with patch.object(hoolamike, "choose_command", return_value=["--version"]), \
                patch.object(hoolamike, "run_hoolamike", return_value=0):
            hoolamike.run_command(app_context)

        assert not (installed / "profiles" / "ModOrganizer.ini.bak").exists()
