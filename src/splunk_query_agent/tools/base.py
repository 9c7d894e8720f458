"""
Tool abstraction.

A tool is the only way the agent touches the local system. Every tool has
a name, a description and a parameter type, and exposes execute(), which
never raises: validation rejections, process failures and I/O errors all
come back as a failed ToolResult.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from splunk_query_agent.result import Err, Result
from splunk_query_agent.types import ToolResult

logger = logging.getLogger(__name__)


class Tool(ABC):
    """
    Base class for the sandboxed tools.

    Subclasses implement run(), returning Ok(output) or Err(kind, message).
    execute() is the contract boundary that collapses that into a
    ToolResult and catches anything run() failed to anticipate.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    params_type: ClassVar[type]

    def execute(self, params: Any) -> ToolResult:
        if not isinstance(params, self.params_type):
            parsed = self.params_type.from_mapping(params)
            if isinstance(parsed, Err):
                return ToolResult.failure(parsed.message, parsed.kind)
            params = parsed.value

        try:
            outcome = self.run(params)
        except Exception as e:
            logger.exception(f"Tool {self.name} failed unexpectedly")
            return ToolResult.failure(f"{type(e).__name__}: {e}")

        if isinstance(outcome, Err):
            logger.warning(f"Tool {self.name} failed ({outcome.kind.value}): {outcome.message}")
            return ToolResult.failure(outcome.message, outcome.kind)
        return ToolResult.ok(outcome.value)

    @abstractmethod
    def run(self, params: Any) -> Result[str]:
        """Validate and perform the operation."""

    def describe(self) -> dict[str, str]:
        return {"name": self.name, "description": self.description}


def format_file_size(size: int) -> str:
    """Human-readable size: 0 B, 512 B, 1.5 KB, 10 MB."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"
