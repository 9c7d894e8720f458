"""Tests for the request/response data model and result types."""

from splunk_query_agent.result import Err, ErrorKind, Ok
from splunk_query_agent.types import (
    AgentRequest,
    AgentResponse,
    ResponseStatus,
    Role,
    ToolCall,
    ToolResult,
)


class TestResult:
    """Tests for Ok/Err."""

    def test_ok_and_err(self):
        assert Ok(1).ok
        assert not Err(ErrorKind.NOT_FOUND, "missing").ok

    def test_categories(self):
        assert ErrorKind.EXECUTION_FAILED.category == "execution_failed"
        assert ErrorKind.DANGEROUS_PATTERN.category == "validation_rejected"
        assert ErrorKind.INVALID_PARAMETERS.category == "validation_rejected"


class TestToolResult:
    """Tests for ToolResult constructors."""

    def test_ok_has_no_error(self):
        result = ToolResult.ok("output")

        assert result.success
        assert result.error is None
        assert result.error_kind is None

    def test_failure_has_no_output(self):
        result = ToolResult.failure("denied", ErrorKind.OUTSIDE_SANDBOX)

        assert not result.success
        assert result.output == ""
        assert result.error_kind == ErrorKind.OUTSIDE_SANDBOX


class TestAgentRequest:
    """Tests for AgentRequest.from_dict."""

    def test_minimal(self):
        request = AgentRequest.from_dict({"prompt": "count errors"})

        assert request.context_files == []
        assert request.conversation_history == []

    def test_history(self):
        request = AgentRequest.from_dict({
            "prompt": "by host",
            "conversation_history": [{"role": "agent", "content": "index=main"}],
        })

        assert request.conversation_history[0].role == Role.AGENT


class TestAgentResponse:
    """Tests for AgentResponse serialization."""

    def test_success_without_tools_omits_tool_calls(self):
        data = AgentResponse.success("index=main", "all events").to_dict()

        assert data == {"status": "success", "query": "index=main", "explanation": "all events"}

    def test_success_with_tools(self):
        call = ToolCall(tool_name="web_search", parameters={"query": "spl"}, output="guide")

        data = AgentResponse.success("q", "e", [call]).to_dict()

        assert data["tool_calls"] == [{
            "tool_name": "web_search",
            "parameters": {"query": "spl"},
            "output": "guide",
            "success": True,
        }]

    def test_error_carries_only_message(self):
        response = AgentResponse.error("Language model request failed")

        assert response.status == ResponseStatus.ERROR
        assert response.to_dict() == {
            "status": "error",
            "error_message": "Language model request failed",
        }
