"""Transaction state models for multi-step operations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple


class TransactionStatus(str, Enum):
    """Lifecycle of a transaction."""
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class RollbackAction:
    """A compensating step registered during a transaction.

    Args:
        description: Human readable summary used in logs
        callback: Zero-argument callable that undoes one mutation
    """
    description: str
    callback: Callable[[], Any]

    def execute(self) -> Any:
        """Run the compensating step."""
        return self.callback()


@dataclass
class RollbackReport:
    """Outcome of a rollback: which compensating steps ran and which failed."""
    transaction: str
    executed: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when every compensating step succeeded."""
        return not self.failed


@dataclass
class TransactionState:
    """Current transaction bookkeeping."""
    name: Optional[str] = None
    status: TransactionStatus = TransactionStatus.IDLE
    actions: List[RollbackAction] = field(default_factory=list)
    started_at: Optional[datetime] = None
    last_outcome: Optional[TransactionStatus] = None

    @property
    def active(self) -> bool:
        """Whether a transaction is in progress."""
        return self.status == TransactionStatus.ACTIVE
