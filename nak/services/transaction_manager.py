"""Transaction manager for multi-step destructive operations.

A transaction collects compensating actions while an install mutates the
filesystem. Commit forgets them; rollback runs them newest first and keeps
going when one of them fails.
"""

from datetime import datetime
from typing import Any, Callable, Optional, Union

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import NoActiveTransactionError, TransactionAlreadyActiveError
from nak.models.transaction import (
    RollbackAction,
    RollbackReport,
    TransactionState,
    TransactionStatus,
)
from nak.services.error_context import ErrorContextStack

logger = get_logger(__name__)


class TransactionManager:
    """Single active transaction with a LIFO rollback stack."""

    def __init__(self, context_stack: ErrorContextStack):
        """Initialize the manager.

        Args:
            context_stack: Receives the transaction name while it is active
        """
        self.context_stack = context_stack
        self.state = TransactionState()

    @property
    def active(self) -> bool:
        """Whether a transaction is in progress."""
        return self.state.active

    @property
    def status(self) -> TransactionStatus:
        """Current lifecycle status."""
        return self.state.status

    def start(self, name: str) -> None:
        """Begin a transaction.

        Raises:
            TransactionAlreadyActiveError: If another transaction is active;
                the active transaction is left untouched
        """
        if self.state.active:
            logger.error(f"Cannot start transaction '{name}': '{self.state.name}' already active")
            raise TransactionAlreadyActiveError(self.state.name or "", name)

        self.state.name = name
        self.state.status = TransactionStatus.ACTIVE
        self.state.actions = []
        self.state.started_at = datetime.now()
        self.context_stack.push(name)
        logger.info(f"Transaction started: {name}")

    def add_rollback_action(
        self,
        action: Union[RollbackAction, Callable[[], Any]],
        description: Optional[str] = None
    ) -> None:
        """Register a compensating step.

        Args:
            action: A RollbackAction or a zero-argument callable
            description: Log label when ``action`` is a bare callable

        Raises:
            NoActiveTransactionError: If no transaction is active
        """
        if not self.state.active:
            raise NoActiveTransactionError("add rollback action")

        if not isinstance(action, RollbackAction):
            label = description or getattr(action, "__name__", "rollback step")
            action = RollbackAction(description=label, callback=action)

        self.state.actions.append(action)
        logger.debug(f"Rollback action registered: {action.description}")

    def commit(self) -> None:
        """Finish successfully, discarding rollback actions without running them.

        Raises:
            NoActiveTransactionError: If no transaction is active
        """
        if not self.state.active:
            raise NoActiveTransactionError("commit")

        name = self.state.name
        discarded = len(self.state.actions)
        self._finish(TransactionStatus.COMMITTED)
        logger.info(f"Transaction committed: {name} ({discarded} rollback actions discarded)")

    def rollback(self) -> RollbackReport:
        """Run every registered compensating step in reverse order.

        A failing step is logged and the remaining steps still run. The
        manager returns to idle whatever the individual outcomes.

        Raises:
            NoActiveTransactionError: If no transaction is active
        """
        if not self.state.active:
            raise NoActiveTransactionError("rollback")

        report = RollbackReport(transaction=self.state.name or "")
        logger.warning(f"Rolling back transaction: {report.transaction}")

        try:
            for action in reversed(self.state.actions):
                try:
                    action.execute()
                    report.executed.append(action.description)
                    logger.info(f"Rollback step completed: {action.description}")
                except Exception as e:
                    report.failed.append((action.description, str(e)))
                    logger.warning(f"Rollback step failed: {action.description}: {e}")
        finally:
            self._finish(TransactionStatus.ROLLED_BACK)

        logger.info(
            f"Rollback finished: {len(report.executed)} succeeded, {len(report.failed)} failed"
        )
        return report

    def _finish(self, outcome: TransactionStatus) -> None:
        self.state.actions = []
        self.state.last_outcome = outcome
        self.state.status = TransactionStatus.IDLE
        self.state.name = None
        self.state.started_at = None
        self.context_stack.pop()
