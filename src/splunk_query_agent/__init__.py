"""
Splunk Query Agent - turns a natural-language request into a Splunk SPL query.

The agent makes two model calls per request. The first picks which sandboxed
tools (web search, grep, terminal, folder indexing, file reading) to run for
extra context; the second writes the query and its explanation. Every file
and command the tools touch goes through the path and command guards in
splunk_query_agent.sandbox.
"""

__version__ = "0.1.0"

from splunk_query_agent.agent import QueryAgent
from splunk_query_agent.analysis import CodeAnalyzer
from splunk_query_agent.config import AppConfig, SandboxConfig
from splunk_query_agent.llm import LLMClient, LLMError
from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.sandbox import CommandGuard, PathGuard
from splunk_query_agent.tools import ToolRegistry, create_default_registry
from splunk_query_agent.types import AgentRequest, AgentResponse, ToolResult

__all__ = [
    "QueryAgent",
    "CodeAnalyzer",
    "AppConfig",
    "SandboxConfig",
    "LLMClient",
    "LLMError",
    "Ok",
    "Err",
    "ErrorKind",
    "Result",
    "PathGuard",
    "CommandGuard",
    "ToolRegistry",
    "create_default_registry",
    "AgentRequest",
    "AgentResponse",
    "ToolResult",
]
