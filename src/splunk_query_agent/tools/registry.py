"""
Tool registry.

The registry is the controlled catalog through which the agent reaches the
tools. It is built once at startup and passed to the agent explicitly, so
tests can construct isolated registries holding stub tools. There is no
way to add or remove tools after construction, which makes concurrent
lookups from independent requests safe without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import MappingProxyType
from typing import Any

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, Result
from splunk_query_agent.tools.base import Tool
from splunk_query_agent.tools.folder_index import FolderIndexingTool
from splunk_query_agent.tools.grep import FileSystemGrepTool
from splunk_query_agent.tools.params import PARAMS_BY_TOOL, parse_params
from splunk_query_agent.tools.read_file import ReadFileTool
from splunk_query_agent.tools.terminal import TerminalCommandTool
from splunk_query_agent.tools.web_search import SearchBackend, WebSearchTool
from splunk_query_agent.types import ToolResult, ToolSpec

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Read-only mapping of tool name to Tool."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        indexed: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in indexed:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            indexed[tool.name] = tool
            logger.debug(f"Registered tool: {tool.name}")
        self._tools = MappingProxyType(indexed)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list(self) -> list[Tool]:
        """All tools, in registration order."""
        return list(self._tools.values())

    @property
    def names(self) -> list[str]:
        return list(self._tools.keys())

    def describe(self) -> list[dict[str, str]]:
        """Name and description of every tool."""
        return [tool.describe() for tool in self._tools.values()]

    def dispatch(self, spec: ToolSpec) -> ToolResult | None:
        """
        Validate a spec's parameters and execute the named tool.

        Returns None when no tool of that name is registered. Parameter
        validation failures come back as a failed ToolResult without the
        tool being invoked.
        """
        tool = self._tools.get(spec.name)
        if tool is None:
            return None

        parsed = self._parse(tool, spec.parameters)
        if isinstance(parsed, Err):
            logger.warning(f"Rejected parameters for {spec.name}: {parsed.message}")
            return ToolResult.failure(parsed.message, parsed.kind)

        logger.info(f"Executing tool: {spec.name}")
        return tool.execute(parsed.value)

    def _parse(self, tool: Tool, parameters: Any) -> Result[Any]:
        if tool.name in PARAMS_BY_TOOL:
            return parse_params(tool.name, parameters)
        # Tools outside the five known shapes validate their own mappings.
        return tool.params_type.from_mapping(parameters)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def create_default_registry(
    config: SandboxConfig,
    search_backend: SearchBackend | None = None,
) -> ToolRegistry:
    """Build the registry holding the five sandboxed tools."""
    return ToolRegistry([
        WebSearchTool(search_backend),
        FileSystemGrepTool(config),
        TerminalCommandTool(config),
        FolderIndexingTool(config),
        ReadFileTool(config),
    ])
