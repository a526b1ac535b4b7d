"""Exception hierarchy for NaK operations."""

from pathlib import Path
from typing import Any, Dict, List, Optional


class NakError(Exception):
    """Base exception for all NaK errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize NaK error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for debug logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ConfigStoreError(NakError):
    """Raised when the config store file cannot be written."""

    def __init__(self, message: str, config_file: Optional[Path] = None):
        details = {}
        if config_file:
            details["config_file"] = str(config_file)
        super().__init__(message, details)


class TransactionError(NakError):
    """Base class for transaction state violations."""


class TransactionAlreadyActiveError(TransactionError):
    """Raised when starting a transaction while another is active."""

    def __init__(self, active_name: str, requested_name: str):
        super().__init__(
            f"Cannot start transaction '{requested_name}': '{active_name}' is already active",
            {"active": active_name, "requested": requested_name}
        )


class NoActiveTransactionError(TransactionError):
    """Raised when an operation needs an active transaction and there is none."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot {operation}: no active transaction",
            {"operation": operation}
        )


class ModuleLoadError(NakError):
    """Base class for workflow module load failures."""

    def __init__(self, message: str, module_name: str, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["module"] = module_name
        super().__init__(message, details)
        self.module_name = module_name


class ModuleSourceNotFoundError(ModuleLoadError):
    """Raised when a workflow module does not exist."""

    def __init__(self, module_name: str):
        super().__init__(f"Module not found: {module_name}", module_name)


class ModuleInitError(ModuleLoadError):
    """Raised when a workflow module exists but fails to initialize."""

    def __init__(self, module_name: str, cause: BaseException):
        super().__init__(
            f"Failed to load module: {module_name}: {cause}",
            module_name,
            {"cause": str(cause), "cause_type": type(cause).__name__}
        )


class ExternalToolError(NakError):
    """Base class for failures of external commands."""


class ToolNotFoundError(ExternalToolError):
    """Raised when a required command is not on PATH."""

    def __init__(self, tool: str, alternatives: Optional[List[str]] = None):
        details: Dict[str, Any] = {"tool": tool}
        if alternatives:
            details["alternatives"] = alternatives
        super().__init__(f"Required tool not found: {tool}", details)
        self.tool = tool


class CommandFailedError(ExternalToolError):
    """Raised when an external command exits non-zero."""

    def __init__(self, command: List[str], returncode: int, output: str = ""):
        super().__init__(
            f"Command '{command[0]}' failed with exit code {returncode}",
            {"command": command, "returncode": returncode, "output": output[-2000:]}
        )
        self.command = command
        self.returncode = returncode
        self.output = output


class DownloadError(ExternalToolError):
    """Raised when a download or release lookup fails."""

    def __init__(self, message: str, url: Optional[str] = None):
        details = {"url": url} if url else {}
        super().__init__(message, details)


class ExtractionError(ExternalToolError):
    """Raised when an archive cannot be extracted."""

    def __init__(self, message: str, archive: Optional[Path] = None):
        details = {"archive": str(archive)} if archive else {}
        super().__init__(message, details)


class SteamNotFoundError(NakError):
    """Raised when no Steam installation can be located."""

    def __init__(self, candidates: List[Path]):
        super().__init__(
            "Could not find Steam installation in standard locations",
            {"candidates": [str(c) for c in candidates]}
        )


class PrefixNotFoundError(NakError):
    """Raised when a game's Proton prefix is missing."""

    def __init__(self, appid: str, path: Optional[Path] = None):
        details: Dict[str, Any] = {"appid": appid}
        if path:
            details["path"] = str(path)
        super().__init__(f"Could not find Proton prefix for AppID {appid}", details)


class UserAbort(NakError):
    """Raised when the user backs out of a wizard step."""

    def __init__(self, message: str = "Cancelled by user"):
        super().__init__(message)
