"""
Tests for QueryAgent and the decision/answer parsers.

The model is replaced by a scripted client so each test controls exactly
what the two model calls return.
"""

import json

from splunk_query_agent.agent import (
    NO_EXPLANATION,
    UNEXPECTED_FAILURE_MESSAGE,
    UPSTREAM_FAILURE_MESSAGE,
    QueryAgent,
    parse_query_response,
    parse_tool_decision,
)
from splunk_query_agent.config import AgentSettings
from splunk_query_agent.llm import LLMError
from splunk_query_agent.tools import create_default_registry
from splunk_query_agent.types import (
    AgentRequest,
    ConversationTurn,
    ResponseStatus,
    Role,
    ToolSpec,
)

ANSWER = "QUERY: index=main error | stats count by host\n\nEXPLANATION: Counts errors per host."


class MockLLMClient:
    """Mock LLM client returning scripted completions."""

    def __init__(self, responses: list[str | Exception] | None = None):
        self._responses = list(responses or [])
        self._response_index = 0
        self.calls: list[list[dict]] = []

    def complete(self, messages: list[dict]) -> str:
        self.calls.append(messages)

        if self._response_index < len(self._responses):
            response = self._responses[self._response_index]
            self._response_index += 1
            if isinstance(response, Exception):
                raise response
            return response

        return ANSWER

    def prompt(self, call: int) -> str:
        return self.calls[call][-1]["content"]


def decision(*tools: dict) -> str:
    return json.dumps({"tools": list(tools)})


class TestParseToolDecision:
    """Tests for parse_tool_decision."""

    def test_none(self):
        assert parse_tool_decision('{"tools": "none"}') == []

    def test_tool_list(self):
        specs = parse_tool_decision(decision({"name": "web_search", "parameters": {"query": "spl"}}))

        assert specs == [ToolSpec(name="web_search", parameters={"query": "spl"})]

    def test_code_fence_is_tolerated(self):
        text = '```json\n{"tools": [{"name": "read_file", "parameters": {"filepath": "a.log"}}]}\n```'

        specs = parse_tool_decision(text)

        assert [s.name for s in specs] == ["read_file"]

    def test_prose_means_no_tools(self):
        assert parse_tool_decision("I would search the web first.") == []

    def test_non_object_means_no_tools(self):
        assert parse_tool_decision('[{"name": "web_search"}]') == []

    def test_malformed_entries_dropped(self):
        text = json.dumps({"tools": [
            {"parameters": {"query": "no name"}},
            {"name": "web_search", "parameters": "not an object"},
            {"name": "folder_file_indexing", "parameters": None},
            "web_search",
        ]})

        specs = parse_tool_decision(text)

        assert specs == [ToolSpec(name="folder_file_indexing", parameters={})]


class TestParseQueryResponse:
    """Tests for parse_query_response."""

    def test_both_sections(self):
        answer = parse_query_response(ANSWER)

        assert answer.query == "index=main error | stats count by host"
        assert answer.explanation == "Counts errors per host."

    def test_multiline_query(self):
        text = "QUERY: index=main\n| stats count\n  EXPLANATION: two lines"

        answer = parse_query_response(text)

        assert answer.query == "index=main\n| stats count"
        assert answer.explanation == "two lines"

    def test_missing_sections_fall_back(self):
        answer = parse_query_response("  index=main | head 10  ")

        assert answer.query == "index=main | head 10"
        assert answer.explanation == NO_EXPLANATION


class TestQueryAgent:
    """Tests for the two-phase generation loop."""

    def make_agent(self, sandbox_config, responses, **settings) -> tuple[QueryAgent, MockLLMClient]:
        llm = MockLLMClient(responses)
        agent = QueryAgent(
            llm_client=llm,
            registry=create_default_registry(sandbox_config),
            settings=AgentSettings(**settings),
        )
        return agent, llm

    def test_no_tools(self, sandbox_config):
        agent, llm = self.make_agent(sandbox_config, ['{"tools": "none"}', ANSWER])

        response = agent.generate_query(AgentRequest(prompt="Count errors per host"))

        assert response.status == ResponseStatus.SUCCESS
        assert response.query == "index=main error | stats count by host"
        assert response.explanation == "Counts errors per host."
        assert response.tool_calls == []
        assert "tool_calls" not in response.to_dict()
        assert len(llm.calls) == 2
        assert "Additional context from tools" not in llm.prompt(1)

    def test_tool_output_reaches_final_prompt(self, sandbox_config):
        agent, llm = self.make_agent(sandbox_config, [
            decision({"name": "web_search", "parameters": {"query": "splunk query stats"}}),
            ANSWER,
        ])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.SUCCESS
        assert len(response.tool_calls) == 1
        call = response.tool_calls[0]
        assert call.tool_name == "web_search"
        assert call.success
        assert "--- web_search Output ---" in llm.prompt(1)
        assert "Splunk Query Best Practices" in llm.prompt(1)

    def test_failed_tool_is_recorded_but_not_fed_back(self, sandbox_config):
        agent, llm = self.make_agent(sandbox_config, [
            decision({"name": "terminal_command", "parameters": {"command": "rm -rf /"}}),
            ANSWER,
        ])

        response = agent.generate_query(AgentRequest(prompt="Clean up"))

        assert response.status == ResponseStatus.SUCCESS
        call = response.tool_calls[0]
        assert not call.success
        assert call.output == ""
        assert call.error == "Command contains dangerous patterns"
        assert "terminal_command Output" not in llm.prompt(1)
        assert response.to_dict()["tool_calls"][0]["error"] == "Command contains dangerous patterns"

    def test_context_files_are_analysed(self, sandbox_config, work_dir):
        (work_dir / "app.log").write_text("2024-01-15 10:30:15 [ERROR] Database down\n")
        agent, llm = self.make_agent(sandbox_config, ['{"tools": "none"}', ANSWER])

        response = agent.generate_query(AgentRequest(
            prompt="Find database errors",
            context_files=["app.log", "missing.log", "../outside.log"],
        ))

        assert response.status == ResponseStatus.SUCCESS
        system_prompt = llm.calls[0][0]["content"]
        assert "**File: app.log**" in system_prompt
        assert "Log Format: ISO Date" in system_prompt
        assert "missing.log" not in system_prompt
        assert "outside.log" not in system_prompt

    def test_json_context_file_is_parsed_without_header(self, sandbox_config, work_dir):
        (work_dir / "config.json").write_text(json.dumps({"logging": {"level": "info"}}))
        agent, llm = self.make_agent(sandbox_config, ['{"tools": "none"}', ANSWER])

        agent.generate_query(AgentRequest(prompt="Q", context_files=["config.json"]))

        assert "logging.level" in llm.calls[0][0]["content"]

    def test_conversation_history_in_system_prompt(self, sandbox_config):
        agent, llm = self.make_agent(sandbox_config, ['{"tools": "none"}', ANSWER])

        agent.generate_query(AgentRequest(
            prompt="Now by host",
            conversation_history=[ConversationTurn(role=Role.USER, content="Count errors")],
        ))

        assert "user: Count errors" in llm.calls[0][0]["content"]

    def test_unparseable_decision_proceeds_without_tools(self, sandbox_config):
        agent, llm = self.make_agent(sandbox_config, ["Let me think about tools.", ANSWER])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.SUCCESS
        assert response.tool_calls == []

    def test_unknown_tool_is_skipped(self, sandbox_config):
        agent, _ = self.make_agent(sandbox_config, [
            decision({"name": "delete_everything", "parameters": {}}),
            ANSWER,
        ])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.SUCCESS
        assert response.tool_calls == []

    def test_tool_calls_are_capped(self, sandbox_config):
        many = [{"name": "web_search", "parameters": {"query": f"spl {i}"}} for i in range(8)]
        agent, _ = self.make_agent(sandbox_config, [decision(*many), ANSWER], max_tool_calls=3)

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert [c.parameters["query"] for c in response.tool_calls] == ["spl 0", "spl 1", "spl 2"]

    def test_model_failure_becomes_error_response(self, sandbox_config):
        agent, _ = self.make_agent(sandbox_config, [LLMError("HTTP 401: bad key")])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.ERROR
        assert response.error_message == UPSTREAM_FAILURE_MESSAGE
        assert response.to_dict() == {"status": "error", "error_message": UPSTREAM_FAILURE_MESSAGE}

    def test_empty_answer_is_an_upstream_failure(self, sandbox_config):
        agent, _ = self.make_agent(sandbox_config, ['{"tools": "none"}', "   "])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.ERROR
        assert response.error_message == UPSTREAM_FAILURE_MESSAGE

    def test_unexpected_exception_becomes_error_response(self, sandbox_config):
        agent, _ = self.make_agent(sandbox_config, [RuntimeError("boom")])

        response = agent.generate_query(AgentRequest(prompt="Count errors"))

        assert response.status == ResponseStatus.ERROR
        assert response.error_message == UNEXPECTED_FAILURE_MESSAGE
