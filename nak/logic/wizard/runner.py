"""Wizard runner: collect input, confirm, execute inside a transaction.

Phases follow COLLECTING_INPUT -> CONFIRMING -> EXECUTING -> SUCCESS or
FAILED. The user can abort before execution; an execution failure rolls
back the transaction and is reported without retrying.
"""

from typing import Any, Dict, List

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NakError, UserAbort
from nak.models.wizard_state import WizardPhase, WizardState

logger = get_logger(__name__)


class Wizard:
    """Base class for a multi-step operation.

    Subclasses implement ``collect`` and ``execute``. Mutations made in
    ``execute`` register compensating actions with
    ``ctx.transactions.add_rollback_action``.
    """

    title = "Wizard"
    help_text = "Check the log file for details."

    def collect(self, ctx) -> Dict[str, Any]:
        """Gather everything ``execute`` needs. Raise UserAbort to go back."""
        raise NotImplementedError

    def summary(self, data: Dict[str, Any]) -> List[str]:
        """Lines shown before asking for confirmation."""
        return [f"{key}: {value}" for key, value in data.items()]

    def confirm_prompt(self, data: Dict[str, Any]) -> str:
        return "Continue?"

    def execute(self, ctx, data: Dict[str, Any]) -> None:
        """Perform the operation; raise on failure."""
        raise NotImplementedError

    def on_success(self, ctx, data: Dict[str, Any]) -> None:
        """Print follow-up instructions after a committed run."""


class WizardRunner:
    """Drive a Wizard through its phases."""

    def __init__(self, ctx):
        self.ctx = ctx

    def run(self, wizard: Wizard) -> WizardState:
        """Run ``wizard`` and return its final state."""
        ctx = self.ctx
        state = WizardState(name=wizard.title)
        logger.info(f"Wizard started: {wizard.title}")

        with ctx.error_stack.scope(wizard.title):
            ctx.ui.print_section(wizard.title)

            try:
                state.collected_data = wizard.collect(ctx) or {}
            except UserAbort as e:
                return self._abort(state, str(e))
            except (NakError, OSError) as e:
                message = e.message if isinstance(e, NakError) else str(e)
                state.error = message
                state.transition(WizardPhase.ABORTED)
                ctx.reporter.report(message, help_text=wizard.help_text)
                return state

            state.transition(WizardPhase.CONFIRMING)
            for line in wizard.summary(state.collected_data):
                ctx.ui.info(line)
            if not ctx.ui.confirm_action(wizard.confirm_prompt(state.collected_data)):
                return self._abort(state, "Not confirmed")

            state.transition(WizardPhase.EXECUTING)
            try:
                ctx.transactions.start(wizard.title)
            except NakError as e:
                state.error = e.message
                state.transition(WizardPhase.FAILED)
                ctx.reporter.report(e.message)
                return state

            try:
                wizard.execute(ctx, state.collected_data)
            except UserAbort as e:
                ctx.transactions.rollback()
                return self._abort(state, str(e))
            except Exception as e:
                message = e.message if isinstance(e, NakError) else str(e)
                logger.error(f"{wizard.title} failed: {message}")
                if isinstance(e, NakError) and e.details:
                    logger.debug(f"Error details: {e.to_dict()}")
                report = ctx.transactions.rollback()
                if report.executed:
                    ctx.ui.warning(f"Rolled back {len(report.executed)} change(s).")
                for description, error in report.failed:
                    ctx.ui.warning(f"Could not undo '{description}': {error}")
                state.error = message
                state.transition(WizardPhase.FAILED)
                ctx.reporter.report(message, help_text=wizard.help_text)
                return state

            ctx.transactions.commit()
            state.transition(WizardPhase.SUCCESS)
            logger.info(f"Wizard completed: {wizard.title}")
            wizard.on_success(ctx, state.collected_data)
            return state

    def _abort(self, state: WizardState, reason: str) -> WizardState:
        state.error = reason
        state.transition(WizardPhase.ABORTED)
        self.ctx.ui.warning(f"{state.name} cancelled.")
        logger.info(f"Wizard aborted: {state.name} ({reason})")
        return state
