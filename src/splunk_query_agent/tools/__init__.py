"""Sandboxed tools and the registry that catalogs them."""

from splunk_query_agent.tools.base import Tool, format_file_size
from splunk_query_agent.tools.folder_index import FolderIndexingTool
from splunk_query_agent.tools.grep import FileSystemGrepTool
from splunk_query_agent.tools.params import (
    FolderIndexParams,
    GrepParams,
    ReadFileParams,
    TerminalCommandParams,
    ToolParams,
    WebSearchParams,
    parse_params,
)
from splunk_query_agent.tools.read_file import ReadFileTool, strip_metadata_header
from splunk_query_agent.tools.registry import ToolRegistry, create_default_registry
from splunk_query_agent.tools.terminal import TerminalCommandTool
from splunk_query_agent.tools.web_search import (
    CannedSearchBackend,
    ExaSearchBackend,
    SearchBackend,
    WebSearchTool,
    create_search_backend,
)

__all__ = [
    "Tool",
    "ToolRegistry",
    "create_default_registry",
    "FileSystemGrepTool",
    "FolderIndexingTool",
    "ReadFileTool",
    "TerminalCommandTool",
    "WebSearchTool",
    "SearchBackend",
    "CannedSearchBackend",
    "ExaSearchBackend",
    "create_search_backend",
    "ToolParams",
    "WebSearchParams",
    "GrepParams",
    "TerminalCommandParams",
    "FolderIndexParams",
    "ReadFileParams",
    "parse_params",
    "format_file_size",
    "strip_metadata_header",
]
