"""Unit tests for the error context stack and reporter."""

from unittest.mock import Mock

import pytest

from nak.services.error_context import UNKNOWN_CONTEXT, ErrorContextStack, ErrorReporter
from nak.services.log_service import LogService

pytestmark = pytest.mark.unit


class TestErrorContextStack:
    """Test push/pop and scoped contexts."""

    def test_empty_stack_reports_unknown_context(self):
        stack = ErrorContextStack()

        assert stack.current() == UNKNOWN_CONTEXT
        assert stack.pop() is None

    def test_push_pop(self):
        stack = ErrorContextStack()
        stack.push("Main Menu")
        stack.push("Download MO2")

        assert stack.current() == "Download MO2"
        assert stack.pop() == "Download MO2"
        assert stack.current() == "Main Menu"

    def test_scope_pops_on_exception(self):
        """Test that a scope restores the stack when its block raises."""
        stack = ErrorContextStack()
        stack.push("outer")

        with pytest.raises(RuntimeError):
            with stack.scope("inner"):
                assert stack.current() == "inner"
                raise RuntimeError("boom")

        assert stack.labels == ["outer"]

    def test_scope_drops_labels_left_by_inner_code(self):
        stack = ErrorContextStack()

        with stack.scope("wizard"):
            stack.push("leaked")

        assert len(stack) == 0


@pytest.fixture
def log_service(temp_dir, console):
    return LogService(temp_dir / "nak.log", console=console)


class TestErrorReporter:
    """Test error display, log offer and fatal exit."""

    def test_report_shows_context_and_message(self, log_service, console):
        stack = ErrorContextStack()
        stack.push("Download Vortex")
        reporter = ErrorReporter(stack, log_service, console=console)

        reporter.report("Network unreachable", help_text="Check your connection")

        output = console.file.getvalue()
        assert "ERROR" in output
        assert "Download Vortex" in output
        assert "Network unreachable" in output
        assert "Check your connection" in output
        assert reporter.history[-1] == {
            "context": "Download Vortex",
            "message": "Network unreachable",
            "fatal": False,
            "help": "Check your connection",
        }

    def test_report_without_context(self, log_service, console):
        reporter = ErrorReporter(ErrorContextStack(), log_service, console=console)

        reporter.report("boom")

        assert reporter.history[-1]["context"] == UNKNOWN_CONTEXT

    def test_offers_filtered_log_tail(self, log_service, console):
        """Test that accepting the offer prints only problem lines."""
        log_service.log_file.write_text(
            "[2024-01-01 10:00:00] [INFO] started\n"
            "[2024-01-01 10:00:01] [WARNING] low disk\n"
            "[2024-01-01 10:00:02] [ERROR] download failed\n"
        )
        confirm = Mock(return_value=True)
        reporter = ErrorReporter(ErrorContextStack(), log_service, console=console, confirm=confirm)

        reporter.report("download failed")

        confirm.assert_called_once_with("Show recent log entries?")
        output = console.file.getvalue()
        assert "low disk" in output
        assert "[ERROR] download failed" in output
        assert "started" not in output

    def test_no_offer_without_log_file(self, log_service, console):
        confirm = Mock(return_value=True)
        reporter = ErrorReporter(ErrorContextStack(), log_service, console=console, confirm=confirm)

        reporter.report("boom")

        confirm.assert_not_called()

    def test_fatal_runs_cleanup_and_exits(self, log_service, console):
        cleanup = Mock()
        reporter = ErrorReporter(ErrorContextStack(), log_service, console=console, cleanup=cleanup)

        with pytest.raises(SystemExit) as exc_info:
            reporter.report("fatal problem", fatal=True, exit_code=3)

        assert exc_info.value.code == 3
        cleanup.assert_called_once()

    def test_error_exit_uses_code_1_even_if_cleanup_fails(self, log_service, console):
        cleanup = Mock(side_effect=OSError("busy"))
        reporter = ErrorReporter(ErrorContextStack(), log_service, console=console, cleanup=cleanup)

        with pytest.raises(SystemExit) as exc_info:
            reporter.error_exit("missing bash")

        assert exc_info.value.code == 1
