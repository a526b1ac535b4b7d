"""Unit tests for the Limo, game-specific and NXM removal workflows."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from nak.logic.workflows import games, limo, nxm
from nak.models.game import Game
from nak.services.system_tools import CommandResult

pytestmark = pytest.mark.unit

SKYRIM = Game(appid="489830", name="Skyrim Special Edition")


@pytest.fixture
def ctx(app_context, temp_dir):
    app_context.steam = Mock()
    app_context.steam.find_game_compatdata.return_value = temp_dir / "compatdata" / "22380"
    app_context.steam.find_game_prefix.return_value = temp_dir / "compatdata" / "489830" / "pfx"
    app_context.protontricks = Mock()
    app_context.protontricks.list_games.return_value = [SKYRIM]
    app_context.protontricks.install_components.return_value = CommandResult(
        ["protontricks"], 0, "done", ""
    )
    return app_context


class TestGames:
    """Test launch option display."""

    def test_fnv_shows_prefix_launch_options(self, ctx, scripted_input):
        scripted_input.feed("n", "")

        games.show_game(ctx, games.GAMES[games.GamesAction.FALLOUT_NEW_VEGAS])

        output = ctx.console.file.getvalue()
        assert "STEAM_COMPAT_DATA_PATH=" in output
        ctx.protontricks.install_components.assert_not_called()

    def test_bg3_shows_dll_override_without_dependency_offer(self, ctx, scripted_input):
        scripted_input.feed("")

        games.show_game(ctx, games.GAMES[games.GamesAction.BALDURS_GATE_3], offer_dependencies=False)

        assert 'WINEDLLOVERRIDES="DWrite.dll=n,b"' in ctx.console.file.getvalue()
        assert scripted_input.remaining == 0

    def test_game_not_run_yet(self, ctx, scripted_input):
        ctx.steam.find_game_compatdata.return_value = None
        scripted_input.feed("")

        games.show_game(ctx, games.GAMES[games.GamesAction.ENDERAL])

        assert "has not been run yet" in ctx.console.file.getvalue()

    def test_accepting_installs_dependencies(self, ctx, scripted_input):
        scripted_input.feed("y", "y", "")

        with patch("nak.logic.prefix_tools.install_dotnet9") as dotnet:
            games.show_game(ctx, games.GAMES[games.GamesAction.ENDERAL])

        ctx.protontricks.install_components.assert_called_once()
        dotnet.assert_called_once()
        assert "Dependencies installed for Enderal Special Edition." in ctx.console.file.getvalue()


class TestLimo:
    """Test Limo prefix preparation."""

    def test_back_out_of_selection(self, ctx, scripted_input):
        scripted_input.feed("b")

        assert limo.configure_game(ctx) is False

    def test_configure_one_game(self, ctx, scripted_input):
        # Pick Skyrim, confirm install, decline another game
        scripted_input.feed("1", "y", "")

        with patch("nak.logic.prefix_tools.install_dotnet9"):
            limo.run_menu(ctx)

        output = ctx.console.file.getvalue()
        assert "Prefix for Skyrim Special Edition" in output
        assert scripted_input.remaining == 0

    def test_failed_install_skips_prefix_hint(self, ctx, scripted_input):
        ctx.protontricks.install_components.return_value = CommandResult(
            ["protontricks"], 1, "wine: failed", ""
        )
        scripted_input.feed("1", "y")

        assert limo.configure_game(ctx) is True
        assert "Prefix for" not in ctx.console.file.getvalue()
        assert not ctx.transactions.active


class TestRemoveHandlers:
    """Test the NXM removal entry point."""

    def test_declined(self, app_context, scripted_input):
        scripted_input.feed("")

        assert nxm.remove_handlers(app_context) == 0
        assert "Nothing removed." in app_context.console.file.getvalue()

    def test_nothing_to_remove(self, app_context, scripted_input):
        scripted_input.feed("y", "")

        assert nxm.remove_handlers(app_context) == 0
        assert "No NXM handlers found." in app_context.console.file.getvalue()

    def test_removes_desktop_file(self, app_context, scripted_input, fake_home):
        applications = fake_home / ".local" / "share" / "applications"
        applications.mkdir(parents=True)
        (applications / "vortex-nxm-handler.desktop").write_text("[Desktop Entry]\n")
        scripted_input.feed("y", "")

        assert nxm.remove_handlers(app_context) == 1
        assert "Removed 1 NXM handler entry." in app_context.console.file.getvalue()
