"""
Explicit result types for guards and tool internals.

Validation and execution inside the sandbox never signal failure by raising.
Every step returns either Ok(value) or Err(kind, message), and the Tool
boundary collapses the final outcome into a ToolResult.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why a guard or tool refused or failed."""
    TRAVERSAL_REJECTED = "traversal_rejected"
    NOT_FOUND = "not_found"
    OUTSIDE_SANDBOX = "outside_sandbox"
    NOT_A_FILE = "not_a_file"
    NOT_A_DIRECTORY = "not_a_directory"
    TOO_LARGE = "too_large"
    EXTENSION_REJECTED = "extension_rejected"
    EMPTY_COMMAND = "empty_command"
    DANGEROUS_PATTERN = "dangerous_pattern"
    NOT_WHITELISTED = "not_whitelisted"
    INVALID_PARAMETERS = "invalid_parameters"
    EXECUTION_FAILED = "execution_failed"

    @property
    def category(self) -> str:
        """Either "execution_failed" or "validation_rejected"."""
        if self is ErrorKind.EXECUTION_FAILED:
            return "execution_failed"
        return "validation_rejected"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a reason."""
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err
