"""Unit tests for menu dispatch."""

from enum import Enum
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from nak.lib.exceptions import DownloadError, NakError
from nak.logic.menus import (
    MAIN_MENU,
    MainMenuAction,
    MenuEntry,
    Orchestrator,
    choose_action,
    is_newer,
    run_submenu,
)
from nak.version import __version__

pytestmark = pytest.mark.unit


class Sample(str, Enum):
    FIRST = "first"
    SECOND = "second"
    BACK = "back"


ENTRIES = [
    MenuEntry(Sample.FIRST, "First"),
    MenuEntry(Sample.SECOND, "Second"),
    MenuEntry(Sample.BACK, "Back"),
]


class TestChooseAction:
    """Test index to action mapping."""

    def test_returns_enum_member(self, app_context, scripted_input):
        scripted_input.feed("2")

        assert choose_action(app_context, "Sample", ENTRIES) is Sample.SECOND

    def test_invalid_input_reprompts(self, app_context, scripted_input):
        scripted_input.feed("9", "x", "1")

        assert choose_action(app_context, "Sample", ENTRIES) is Sample.FIRST
        assert scripted_input.remaining == 0

    def test_main_menu_exit_is_last(self):
        assert MAIN_MENU[-1].action is MainMenuAction.EXIT
        assert len(MAIN_MENU) == 10


class TestRunSubmenu:
    """Test the submenu loop."""

    def test_runs_handlers_until_back(self, app_context, scripted_input):
        scripted_input.feed("1", "2", "1", "3")
        first, second = Mock(), Mock()

        run_submenu(app_context, "Sample", ENTRIES, {Sample.FIRST: first, Sample.SECOND: second})

        assert first.call_count == 2
        assert second.call_count == 1

    def test_handler_error_is_reported_and_loop_continues(self, app_context, scripted_input):
        scripted_input.feed("1", "3")
        failing = Mock(side_effect=NakError("prefix not found"))

        run_submenu(app_context, "Sample", ENTRIES, {Sample.FIRST: failing})

        output = app_context.console.file.getvalue()
        assert "prefix not found" in output
        assert "Sample: first" in output
        assert len(app_context.error_stack) == 0

    def test_unexpected_error_is_reported_and_loop_continues(self, app_context, scripted_input):
        scripted_input.feed("1", "2", "3")
        failing = Mock(side_effect=ValueError("No closing quotation"))
        second = Mock()

        run_submenu(app_context, "Sample", ENTRIES, {Sample.FIRST: failing, Sample.SECOND: second})

        output = app_context.console.file.getvalue()
        assert "Unexpected error: No closing quotation" in output
        second.assert_called_once()

    def test_closed_input_propagates(self, app_context, scripted_input):
        scripted_input.feed("1")

        with pytest.raises(EOFError):
            run_submenu(app_context, "Sample", ENTRIES, {Sample.FIRST: Mock(side_effect=EOFError)})

    def test_before_menu_runs_each_iteration(self, app_context, scripted_input):
        scripted_input.feed("1", "3")
        before = Mock()

        run_submenu(app_context, "Sample", ENTRIES, {Sample.FIRST: Mock()}, before_menu=before)

        assert before.call_count == 2


class TestOrchestrator:
    """Test main menu dispatch and the update check."""

    def test_exit_stops(self, app_context):
        assert Orchestrator(app_context).dispatch(MainMenuAction.EXIT) is False

    def test_workflow_module_is_loaded_and_run(self, app_context):
        module = SimpleNamespace(run_menu=Mock())
        app_context.loader = Mock()
        app_context.loader.load.return_value = True
        app_context.loader.get.return_value = module

        assert Orchestrator(app_context).dispatch(MainMenuAction.LIMO) is True

        app_context.loader.load.assert_called_once_with("limo")
        module.run_menu.assert_called_once_with(app_context)
        assert len(app_context.navigation) == 1

    def test_remove_nxm_calls_remove_handlers(self, app_context):
        module = SimpleNamespace(remove_handlers=Mock())
        app_context.loader = Mock()
        app_context.loader.load.return_value = True
        app_context.loader.get.return_value = module

        Orchestrator(app_context).dispatch(MainMenuAction.REMOVE_NXM)

        app_context.loader.load.assert_called_once_with("nxm")
        module.remove_handlers.assert_called_once_with(app_context)

    def test_workflow_error_is_reported(self, app_context):
        module = SimpleNamespace(run_menu=Mock(side_effect=NakError("Steam not found")))
        app_context.loader = Mock()
        app_context.loader.load.return_value = True
        app_context.loader.get.return_value = module

        assert Orchestrator(app_context).run_module("ttw", "Tale of Two Wastelands") is False

        assert "Steam not found" in app_context.console.file.getvalue()
        assert len(app_context.navigation) == 1

    def test_load_failure_is_reported(self, app_context):
        app_context.loader = Mock()
        app_context.loader.load.return_value = False
        app_context.loader.failures = {"vortex": SimpleNamespace(error=NakError("broken module"))}

        assert Orchestrator(app_context).run_module("vortex", "Vortex Setup") is False

        output = app_context.console.file.getvalue()
        assert "broken module" in output
        assert "Vortex Setup" in output
        assert len(app_context.navigation) == 1

    def test_breadcrumb_inside_module(self, app_context):
        seen = []
        module = SimpleNamespace(run_menu=lambda ctx: seen.append(ctx.navigation.breadcrumb()))
        app_context.loader = Mock()
        app_context.loader.load.return_value = True
        app_context.loader.get.return_value = module

        Orchestrator(app_context).run_module("hoolamike", "Hoolamike Tools")

        assert seen[0].endswith("Hoolamike Tools")

    def test_update_check_is_cached(self, app_context):
        orchestrator = Orchestrator(app_context)
        with patch.object(orchestrator, "_fetch_latest_version", return_value="99.0.0") as fetch:
            assert orchestrator.check_for_updates() == "99.0.0"
            assert orchestrator.check_for_updates() == "99.0.0"

        fetch.assert_called_once()
        assert "A new version is available: 99.0.0" in app_context.console.file.getvalue()

    def test_up_to_date(self, app_context):
        orchestrator = Orchestrator(app_context)
        with patch.object(orchestrator, "_fetch_latest_version", return_value=__version__):
            orchestrator.check_for_updates()

        assert "NaK is up to date." in app_context.console.file.getvalue()

    def test_failed_update_check_is_not_cached(self, app_context):
        orchestrator = Orchestrator(app_context)
        with patch.object(orchestrator, "_fetch_latest_version",
                          side_effect=DownloadError("offline")) as fetch:
            assert orchestrator.check_for_updates() is None
            assert orchestrator.check_for_updates() is None

        assert fetch.call_count == 2
        assert "update_check" not in app_context.cache

    def test_release_tag_prefix_is_stripped(self, app_context):
        app_context.downloader = Mock()
        app_context.downloader.latest_release.return_value = {"tag_name": "v4.1.0"}

        assert Orchestrator(app_context)._fetch_latest_version() == "4.1.0"
        app_context.downloader.latest_release.assert_called_once_with("SulfurNitride/NaK")


class TestIsNewer:
    """Test release version comparison."""

    @pytest.mark.parametrize("latest,current,expected", [
        ("1.7.0", "1.6.0", True),
        ("1.10.0", "1.9.0", True),
        ("1.6.0", "1.6.0", False),
        ("1.5.2", "1.6.0", False),
        (None, "1.6.0", False),
        ("nightly", "1.6.0", True),
    ])
    def test_compare(self, latest, current, expected):
        assert is_newer(latest, current) is expected

    def test_older_release_is_not_announced(self, app_context):
        orchestrator = Orchestrator(app_context)
        with patch.object(orchestrator, "_fetch_latest_version", return_value="0.1.0"):
            orchestrator.check_for_updates()

        assert "NaK is up to date." in app_context.console.file.getvalue()
