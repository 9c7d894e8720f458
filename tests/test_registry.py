"""Tests for ToolRegistry."""

from dataclasses import dataclass
from typing import Any, ClassVar

import pytest

from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.tools import Tool, ToolRegistry, create_default_registry
from splunk_query_agent.types import ToolSpec


@dataclass(frozen=True)
class EchoParams:
    tool_name: ClassVar[str] = "echo"
    text: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[EchoParams]":
        if isinstance(mapping, dict) and isinstance(mapping.get("text"), str):
            return Ok(cls(text=mapping["text"]))
        return Err(ErrorKind.INVALID_PARAMETERS, "echo requires 'text'")


class EchoTool(Tool):
    name = "echo"
    description = "Echo the input"
    params_type = EchoParams

    def __init__(self) -> None:
        self.calls: list[EchoParams] = []

    def run(self, params: EchoParams) -> Result[str]:
        self.calls.append(params)
        return Ok(f"echo: {params.text}")


class TestToolRegistry:
    """Tests for registry construction and lookup."""

    def test_default_registry_has_five_tools(self, sandbox_config):
        registry = create_default_registry(sandbox_config)

        assert registry.names == [
            "web_search",
            "file_system_grep",
            "terminal_command",
            "folder_file_indexing",
            "read_file",
        ]
        assert len(registry) == 5
        assert "read_file" in registry

    def test_describe(self, sandbox_config):
        registry = create_default_registry(sandbox_config)

        descriptions = registry.describe()

        assert descriptions[0]["name"] == "web_search"
        assert all(set(d) == {"name", "description"} for d in descriptions)

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate tool name: echo"):
            ToolRegistry([EchoTool(), EchoTool()])

    def test_get_unknown(self):
        assert ToolRegistry([EchoTool()]).get("missing") is None

    def test_list_is_a_copy(self):
        registry = ToolRegistry([EchoTool()])

        registry.list().clear()

        assert len(registry) == 1

    def test_registries_are_isolated(self):
        first = ToolRegistry([EchoTool()])
        second = ToolRegistry([])

        assert "echo" in first
        assert "echo" not in second


class TestDispatch:
    """Tests for ToolRegistry.dispatch."""

    def test_dispatch_runs_tool(self):
        tool = EchoTool()
        registry = ToolRegistry([tool])

        result = registry.dispatch(ToolSpec(name="echo", parameters={"text": "hi"}))

        assert result.success
        assert result.output == "echo: hi"
        assert tool.calls == [EchoParams(text="hi")]

    def test_unknown_tool_returns_none(self):
        registry = ToolRegistry([EchoTool()])

        assert registry.dispatch(ToolSpec(name="shell", parameters={})) is None

    def test_invalid_parameters_do_not_invoke_tool(self):
        tool = EchoTool()
        registry = ToolRegistry([tool])

        result = registry.dispatch(ToolSpec(name="echo", parameters={"text": 3}))

        assert not result.success
        assert result.error_kind == ErrorKind.INVALID_PARAMETERS
        assert tool.calls == []

    def test_known_shape_is_checked(self, sandbox_config):
        registry = create_default_registry(sandbox_config)

        result = registry.dispatch(ToolSpec(name="read_file", parameters={"path": "x.log"}))

        assert not result.success
        assert "filepath" in result.error

    def test_web_search_through_default_registry(self, sandbox_config):
        registry = create_default_registry(sandbox_config)

        result = registry.dispatch(ToolSpec(name="web_search", parameters={"query": "spl basics"}))

        assert result.success
        assert "SPL" in result.output
