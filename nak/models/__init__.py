"""Data models for NaK."""

from .game import Game, get_game_components
from .transaction import RollbackAction, RollbackReport, TransactionState, TransactionStatus
from .ui import MenuOption, SelectionState
from .wizard_state import WizardPhase, WizardState

__all__ = [
    "Game",
    "get_game_components",
    "MenuOption",
    "RollbackAction",
    "RollbackReport",
    "SelectionState",
    "TransactionState",
    "TransactionStatus",
    "WizardPhase",
    "WizardState",
]
