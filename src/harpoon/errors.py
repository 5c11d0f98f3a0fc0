"""Error types raised by harpoon"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Categories of harpoon failures"""

    RUNTIME_NOT_FOUND = "RUNTIME_NOT_FOUND"
    RUNTIME_UNAVAILABLE = "RUNTIME_UNAVAILABLE"
    RUNTIME_COMMAND = "RUNTIME_COMMAND"
    RUNTIME_TIMEOUT = "RUNTIME_TIMEOUT"
    IMAGE_PARSING = "IMAGE_PARSING"
    INVALID_CONFIG = "INVALID_CONFIG"
    FILE_OPERATION = "FILE_OPERATION"


class HarpoonError(Exception):
    """Base class for all harpoon errors

    Carries an error code and an optional context dict describing the
    offending runtime, image or file.
    """

    code = ErrorCode.INVALID_CONFIG

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def with_context(self, key: str, value: Any) -> "HarpoonError":
        """Attach a context value and return self for chaining"""
        self.context[key] = value
        return self


class ParseError(HarpoonError):
    """Image reference could not be parsed"""

    code = ErrorCode.IMAGE_PARSING


class RuntimeNotFound(HarpoonError):
    """Requested container runtime is not a known engine"""

    code = ErrorCode.RUNTIME_NOT_FOUND

    def __init__(self, runtime: str):
        super().__init__(f"container runtime '{runtime}' not found", {"runtime": runtime})
        self.runtime = runtime


class RuntimeUnavailable(HarpoonError):
    """Runtime is known but not usable on this host"""

    code = ErrorCode.RUNTIME_UNAVAILABLE


class EngineCommandError(HarpoonError):
    """An engine subprocess exited with a non-zero status"""

    code = ErrorCode.RUNTIME_COMMAND

    def __init__(self, message: str, command=None, exit_code: Optional[int] = None, output: str = ""):
        super().__init__(message, {"command": command, "exit_code": exit_code})
        self.command = list(command or [])
        self.exit_code = exit_code
        self.output = output

    def __str__(self) -> str:
        detail = self.output.strip().splitlines()
        if detail:
            return f"{self.message}: {detail[-1]}"
        return self.message


class EngineTimeoutError(EngineCommandError):
    """An engine subprocess did not finish before its deadline"""

    code = ErrorCode.RUNTIME_TIMEOUT


class ConfigurationError(HarpoonError):
    """Invalid configuration or command line combination"""

    code = ErrorCode.INVALID_CONFIG


class FileError(HarpoonError):
    """Item list or archive files could not be read or found"""

    code = ErrorCode.FILE_OPERATION
