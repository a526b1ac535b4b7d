"""Lazy loader for workflow modules.

Feature menus live in ``nak.logic.workflows``. A module is imported and
initialized the first time its menu is opened; later loads are no-ops.
"""

import importlib
import importlib.util
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import Any, Dict, Optional, Set

from nak.core.lib_logger import get_logger
from nak.lib.exceptions import ModuleInitError, ModuleLoadError, ModuleSourceNotFoundError
from nak.services.error_context import ErrorContextStack

logger = get_logger(__name__)

WORKFLOW_PACKAGE = "nak.logic.workflows"


class LoadFailureKind(str, Enum):
    """Why a module could not be loaded."""
    MISSING = "missing"
    INIT_FAILED = "init_failed"


@dataclass
class LoadFailure:
    """Last failed load attempt for a module."""
    name: str
    kind: LoadFailureKind
    error: ModuleLoadError


class ModuleLoader:
    """Idempotent loader backed by the set of already initialized modules."""

    def __init__(
        self,
        context_stack: ErrorContextStack,
        package: str = WORKFLOW_PACKAGE,
        init_arg: Any = None
    ):
        """Initialize the loader.

        Args:
            context_stack: Receives a ``Loading module`` label during each attempt
            package: Dotted package the module names are resolved against
            init_arg: Passed to a module's ``initialize()`` hook when present
        """
        self.context_stack = context_stack
        self.package = package
        self.init_arg = init_arg
        self.loaded: Set[str] = set()
        self.failures: Dict[str, LoadFailure] = {}
        self._modules: Dict[str, ModuleType] = {}

    def load(self, name: str) -> bool:
        """Load and initialize ``name``. Returns True on success.

        A missing module and a module whose import or ``initialize()`` raised
        are recorded separately in ``failures``.
        """
        if name in self.loaded:
            return True

        qualified = f"{self.package}.{name}"
        logger.info(f"Loading module: {name}")

        with self.context_stack.scope(f"Loading module: {name}"):
            try:
                spec = importlib.util.find_spec(qualified)
            except ModuleNotFoundError:
                spec = None

            if spec is None:
                error = ModuleSourceNotFoundError(name)
                self.failures[name] = LoadFailure(name, LoadFailureKind.MISSING, error)
                logger.error(error.message)
                return False

            try:
                module = importlib.import_module(qualified)
                initialize = getattr(module, "initialize", None)
                if callable(initialize):
                    initialize(self.init_arg)
            except Exception as e:
                error = ModuleInitError(name, e)
                self.failures[name] = LoadFailure(name, LoadFailureKind.INIT_FAILED, error)
                logger.error(error.message)
                return False

        self.loaded.add(name)
        self._modules[name] = module
        self.failures.pop(name, None)
        logger.info(f"Module loaded: {name}")
        return True

    def get(self, name: str) -> Optional[ModuleType]:
        """Return a loaded module, or None when it has not been loaded."""
        return self._modules.get(name)

    def is_loaded(self, name: str) -> bool:
        """Check membership in the loaded set."""
        return name in self.loaded
