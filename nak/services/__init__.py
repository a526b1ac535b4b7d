"""Services module for NaK."""

from .config_store import ConfigStore
from .error_context import ErrorContextStack, ErrorReporter
from .module_loader import ModuleLoader
from .navigation import NavigationStack
from .operation_cache import OperationCache
from .transaction_manager import TransactionManager

__all__ = [
    "ConfigStore",
    "ErrorContextStack",
    "ErrorReporter",
    "ModuleLoader",
    "NavigationStack",
    "OperationCache",
    "TransactionManager",
]
