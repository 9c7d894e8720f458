"""
Core types for the query agent.

These types flow through a single request: the inbound AgentRequest, the
ToolSpecs parsed from the model's decision, the ToolResults the tools
produce, the ToolCall audit trail, and the outbound AgentResponse. None of
them outlive the request that created them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from splunk_query_agent.result import ErrorKind


class Role(str, Enum):
    """Speaker of a conversation turn."""
    USER = "user"
    AGENT = "agent"


class ResponseStatus(str, Enum):
    """Terminal state of a request."""
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ConversationTurn:
    """One prior exchange supplied by the caller."""
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class ToolSpec:
    """
    A tool invocation requested by the model.

    Created by parsing the tool-selection output, consumed once by the
    dispatch step, then discarded.
    """
    name: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """
    Outcome of one tool invocation.

    A failed result never carries output and a successful one never
    carries an error. Use ok() and failure() rather than the constructor.
    """
    success: bool
    output: str = ""
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def failure(cls, error: str, kind: ErrorKind = ErrorKind.EXECUTION_FAILED) -> "ToolResult":
        return cls(success=False, output="", error=error, error_kind=kind)


@dataclass
class ToolCall:
    """Audit record for a dispatched tool, successful or not."""
    tool_name: str
    parameters: dict[str, Any]
    output: str
    success: bool = True
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "tool_name": self.tool_name,
            "parameters": self.parameters,
            "output": self.output,
            "success": self.success,
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class FileAnalysis:
    """Signals extracted from one context file."""
    file_path: str
    file_type: str
    patterns: list[str] = field(default_factory=list)
    log_formats: list[str] = field(default_factory=list)
    data_fields: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)


@dataclass
class QueryContext:
    """Everything the prompts are built from."""
    user_prompt: str
    analysis_results: list[FileAnalysis] = field(default_factory=list)
    conversation_history: list[ConversationTurn] = field(default_factory=list)


@dataclass
class AgentRequest:
    """Inbound request."""
    prompt: str
    context_files: list[str] = field(default_factory=list)
    conversation_history: list[ConversationTurn] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentRequest":
        return cls(
            prompt=data["prompt"],
            context_files=list(data.get("context_files") or []),
            conversation_history=[
                ConversationTurn(role=Role(turn["role"]), content=turn["content"])
                for turn in data.get("conversation_history") or []
            ],
        )


@dataclass
class AgentResponse:
    """
    Outbound response.

    Error responses carry only error_message. Successful responses carry
    query and explanation, and tool_calls when at least one tool ran.
    """
    status: ResponseStatus
    query: str | None = None
    explanation: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    error_message: str | None = None

    @classmethod
    def success(
        cls,
        query: str,
        explanation: str,
        tool_calls: list[ToolCall] | None = None,
    ) -> "AgentResponse":
        return cls(
            status=ResponseStatus.SUCCESS,
            query=query,
            explanation=explanation,
            tool_calls=list(tool_calls or []),
        )

    @classmethod
    def error(cls, message: str) -> "AgentResponse":
        return cls(status=ResponseStatus.ERROR, error_message=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting absent fields."""
        result: dict[str, Any] = {"status": self.status.value}
        if self.status is ResponseStatus.ERROR:
            result["error_message"] = self.error_message or "Unknown error occurred"
            return result
        result["query"] = self.query
        result["explanation"] = self.explanation
        if self.tool_calls:
            result["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return result
