"""Wizard state model for multi-step install screens."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class WizardPhase(str, Enum):
    """Phases of a download, configure, confirm, execute wizard."""
    COLLECTING_INPUT = "collecting_input"
    CONFIRMING = "confirming"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"
    ABORTED = "aborted"


ALLOWED_TRANSITIONS: Dict[WizardPhase, set] = {
    WizardPhase.COLLECTING_INPUT: {WizardPhase.CONFIRMING, WizardPhase.ABORTED},
    WizardPhase.CONFIRMING: {WizardPhase.EXECUTING, WizardPhase.ABORTED},
    WizardPhase.EXECUTING: {WizardPhase.SUCCESS, WizardPhase.FAILED, WizardPhase.ABORTED},
    WizardPhase.SUCCESS: set(),
    WizardPhase.FAILED: set(),
    WizardPhase.ABORTED: set(),
}

TERMINAL_PHASES = {WizardPhase.SUCCESS, WizardPhase.FAILED, WizardPhase.ABORTED}


class WizardState(BaseModel):
    """Tracks one run of a wizard through its phases."""

    name: str = Field(description="Wizard title, also used as transaction name")
    phase: WizardPhase = Field(default=WizardPhase.COLLECTING_INPUT)
    collected_data: Dict[str, Any] = Field(default_factory=dict)
    history: List[WizardPhase] = Field(default_factory=lambda: [WizardPhase.COLLECTING_INPUT])
    error: Optional[str] = Field(default=None)
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = Field(default=None)

    @property
    def is_finished(self) -> bool:
        """Whether the wizard reached a terminal phase."""
        return self.phase in TERMINAL_PHASES

    def can_transition(self, target: WizardPhase) -> bool:
        """Check whether moving to ``target`` is allowed from the current phase."""
        return target in ALLOWED_TRANSITIONS[self.phase]

    def transition(self, target: WizardPhase) -> None:
        """Move to ``target``.

        Raises:
            ValueError: If the transition is not allowed
        """
        if not self.can_transition(target):
            raise ValueError(f"Invalid wizard transition: {self.phase.value} -> {target.value}")
        self.phase = target
        self.history.append(target)
        if target in TERMINAL_PHASES:
            self.end_time = datetime.now()
