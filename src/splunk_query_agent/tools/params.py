"""
Parameter shapes for the five tools.

The model hands us an untyped mapping per tool. parse_params() turns it
into one variant of a tagged union keyed by tool name, so each tool only
ever sees the shape it declared.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from splunk_query_agent.result import Err, ErrorKind, Ok, Result


def _require_string(mapping: Any, key: str, tool: str) -> Result[str]:
    if not isinstance(mapping, dict):
        return Err(ErrorKind.INVALID_PARAMETERS, f"{tool} parameters must be an object")
    value = mapping.get(key)
    if not isinstance(value, str) or not value.strip():
        return Err(
            ErrorKind.INVALID_PARAMETERS,
            f"{tool} requires a non-empty string parameter '{key}'",
        )
    return Ok(value)


@dataclass(frozen=True)
class WebSearchParams:
    tool_name: ClassVar[str] = "web_search"
    query: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[WebSearchParams]":
        query = _require_string(mapping, "query", cls.tool_name)
        if isinstance(query, Err):
            return query
        return Ok(cls(query=query.value))

    def to_dict(self) -> dict[str, str]:
        return {"query": self.query}


@dataclass(frozen=True)
class GrepParams:
    tool_name: ClassVar[str] = "file_system_grep"
    pattern: str
    path: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[GrepParams]":
        pattern = _require_string(mapping, "pattern", cls.tool_name)
        if isinstance(pattern, Err):
            return pattern
        path = _require_string(mapping, "path", cls.tool_name)
        if isinstance(path, Err):
            return path
        return Ok(cls(pattern=pattern.value, path=path.value))

    def to_dict(self) -> dict[str, str]:
        return {"pattern": self.pattern, "path": self.path}


@dataclass(frozen=True)
class TerminalCommandParams:
    tool_name: ClassVar[str] = "terminal_command"
    command: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[TerminalCommandParams]":
        if isinstance(mapping, dict) and isinstance(mapping.get("command"), str):
            # Empty commands are left for CommandGuard to reject.
            return Ok(cls(command=mapping["command"]))
        return Err(
            ErrorKind.INVALID_PARAMETERS,
            f"{cls.tool_name} requires a string parameter 'command'",
        )

    def to_dict(self) -> dict[str, str]:
        return {"command": self.command}


@dataclass(frozen=True)
class FolderIndexParams:
    tool_name: ClassVar[str] = "folder_file_indexing"
    path: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[FolderIndexParams]":
        path = _require_string(mapping, "path", cls.tool_name)
        if isinstance(path, Err):
            return path
        return Ok(cls(path=path.value))

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path}


@dataclass(frozen=True)
class ReadFileParams:
    tool_name: ClassVar[str] = "read_file"
    filepath: str

    @classmethod
    def from_mapping(cls, mapping: Any) -> "Result[ReadFileParams]":
        filepath = _require_string(mapping, "filepath", cls.tool_name)
        if isinstance(filepath, Err):
            return filepath
        return Ok(cls(filepath=filepath.value))

    def to_dict(self) -> dict[str, str]:
        return {"filepath": self.filepath}


ToolParams = (
    WebSearchParams
    | GrepParams
    | TerminalCommandParams
    | FolderIndexParams
    | ReadFileParams
)

PARAMS_BY_TOOL: dict[str, type] = {
    params_type.tool_name: params_type
    for params_type in (
        WebSearchParams,
        GrepParams,
        TerminalCommandParams,
        FolderIndexParams,
        ReadFileParams,
    )
}

PARAMETER_SHAPES: dict[str, dict[str, str]] = {
    "web_search": {"query": "string"},
    "file_system_grep": {"pattern": "string", "path": "string"},
    "terminal_command": {"command": "string"},
    "folder_file_indexing": {"path": "string"},
    "read_file": {"filepath": "string"},
}


def parse_params(tool_name: str, mapping: Any) -> Result[ToolParams]:
    """Validate a raw parameter mapping against the named tool's shape."""
    params_type = PARAMS_BY_TOOL.get(tool_name)
    if params_type is None:
        return Err(ErrorKind.INVALID_PARAMETERS, f"Unknown tool: {tool_name}")
    return params_type.from_mapping(mapping)
