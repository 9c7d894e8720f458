"""
QueryAgent - the two-phase orchestration loop.

One call to generate_query() walks a single request through:

1. ContextBuild: read each context file through the sandboxed read_file
   tool and analyse it; unreadable files are skipped.
2. ToolSelection: ask the model which registered tools to run.
3. DecisionValidation: parse the model's JSON decision; anything that is
   not the expected shape means "no tools".
4. ToolDispatch: run the accepted tools one at a time through the
   registry, recording a ToolCall for each.
5. FinalGeneration: ask the model for the query, with tool output folded
   into the prompt.
6. ResponseAssembly: pull the QUERY and EXPLANATION sections out of the
   answer, falling back rather than failing on format drift.

Only a failed model call or an unexpected exception ends the request in an
error response. Tool failures reduce the available context and nothing
else.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from splunk_query_agent import prompts
from splunk_query_agent.analysis import Analyzer, CodeAnalyzer
from splunk_query_agent.config import AgentSettings
from splunk_query_agent.llm import LLMError
from splunk_query_agent.tools.params import ReadFileParams
from splunk_query_agent.tools.read_file import strip_metadata_header
from splunk_query_agent.tools.registry import ToolRegistry
from splunk_query_agent.types import (
    AgentRequest,
    AgentResponse,
    FileAnalysis,
    QueryContext,
    ToolCall,
    ToolSpec,
)

logger = logging.getLogger(__name__)

NO_EXPLANATION = "No explanation provided"
UPSTREAM_FAILURE_MESSAGE = "Language model request failed"
UNEXPECTED_FAILURE_MESSAGE = "Internal error while generating query"

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)
_QUERY_SECTION = re.compile(r"QUERY:\s*(.*?)(?=\n\s*EXPLANATION:|\Z)", re.DOTALL)
_EXPLANATION_SECTION = re.compile(r"EXPLANATION:\s*(.*)\Z", re.DOTALL)


class CompletionModel(Protocol):
    """The model boundary: messages in, text out."""

    def complete(self, messages: list[dict[str, Any]]) -> str: ...


@dataclass
class ParsedAnswer:
    query: str
    explanation: str


def parse_tool_decision(text: str) -> list[ToolSpec]:
    """
    Parse the tool-selection output.

    Accepts {"tools": "none"} or {"tools": [{"name": ..., "parameters": {...}}]},
    optionally inside a markdown code fence. Any other shape yields no
    tools. Individual entries without a string name or with non-object
    parameters are dropped.
    """
    stripped = text.strip()
    fenced = _CODE_FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1).strip()

    try:
        decision = json.loads(stripped)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Tool decision is not valid JSON, proceeding without tools")
        return []

    if not isinstance(decision, dict):
        logger.warning("Tool decision is not a JSON object, proceeding without tools")
        return []

    tools = decision.get("tools")
    if tools == "none" or tools is None:
        return []
    if not isinstance(tools, list):
        logger.warning(f"Unexpected 'tools' value in decision: {tools!r}")
        return []

    specs: list[ToolSpec] = []
    for entry in tools:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            logger.warning(f"Dropping malformed tool entry: {entry!r}")
            continue
        parameters = entry.get("parameters", {})
        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            logger.warning(f"Dropping tool entry with non-object parameters: {entry!r}")
            continue
        specs.append(ToolSpec(name=entry["name"], parameters=parameters))
    return specs


def parse_query_response(text: str) -> ParsedAnswer:
    """
    Split the final answer into query and explanation.

    A missing QUERY section (or an empty one) makes the whole trimmed text
    the query. A missing EXPLANATION section is replaced with a fixed
    marker.
    """
    query_match = _QUERY_SECTION.search(text)
    explanation_match = _EXPLANATION_SECTION.search(text)

    query = query_match.group(1).strip() if query_match else ""
    explanation = explanation_match.group(1).strip() if explanation_match else ""

    return ParsedAnswer(
        query=query or text.strip(),
        explanation=explanation or NO_EXPLANATION,
    )


class QueryAgent:
    """Turns an AgentRequest into an AgentResponse."""

    def __init__(
        self,
        llm_client: CompletionModel,
        registry: ToolRegistry,
        analyzer: Analyzer | None = None,
        settings: AgentSettings | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.registry = registry
        self.analyzer = analyzer or CodeAnalyzer()
        self.settings = settings or AgentSettings()

    def generate_query(self, request: AgentRequest) -> AgentResponse:
        """Run the whole loop. Never raises."""
        try:
            logger.info(f"Starting Splunk query generation for prompt: {request.prompt[:100]}")

            context = QueryContext(
                user_prompt=request.prompt,
                analysis_results=self.analyze_context_files(request.context_files),
                conversation_history=list(request.conversation_history),
            )
            response = self.run_query_generation(context)

            logger.info("Successfully generated Splunk query")
            return response

        except LLMError as e:
            logger.error(f"Model call failed: {e}")
            return AgentResponse.error(UPSTREAM_FAILURE_MESSAGE)
        except Exception:
            logger.exception("Unexpected failure while generating Splunk query")
            return AgentResponse.error(UNEXPECTED_FAILURE_MESSAGE)

    def analyze_context_files(self, file_paths: list[str]) -> list[FileAnalysis]:
        read_tool = self.registry.get("read_file")
        if file_paths and read_tool is None:
            logger.warning("No read_file tool registered, skipping context files")
            return []

        results: list[FileAnalysis] = []
        for file_path in file_paths:
            logger.debug(f"Analyzing context file: {file_path}")
            read = read_tool.execute(ReadFileParams(filepath=file_path))
            if not read.success:
                logger.warning(f"Failed to read context file {file_path}: {read.error}")
                continue
            try:
                content = strip_metadata_header(read.output)
                results.append(self.analyzer.analyze_file(file_path, content))
            except Exception as e:
                logger.warning(f"Error analyzing context file {file_path}: {e}")
        return results

    def run_query_generation(self, context: QueryContext) -> AgentResponse:
        system_message = {"role": "system", "content": prompts.build_system_prompt(context)}

        decision_text = self.llm_client.complete([
            system_message,
            {
                "role": "user",
                "content": prompts.build_tool_selection_prompt(context, self.registry.describe()),
            },
        ])

        specs = parse_tool_decision(decision_text)
        if len(specs) > self.settings.max_tool_calls:
            logger.warning(
                f"Model requested {len(specs)} tools, keeping the first {self.settings.max_tool_calls}"
            )
            specs = specs[: self.settings.max_tool_calls]

        tool_calls, additional_context = self.dispatch_tools(specs)

        answer_text = self.llm_client.complete([
            system_message,
            {"role": "user", "content": prompts.build_final_prompt(context, additional_context)},
        ])
        if not answer_text or not answer_text.strip():
            raise LLMError("Model returned an empty response")

        answer = parse_query_response(answer_text)
        return AgentResponse.success(answer.query, answer.explanation, tool_calls)

    def dispatch_tools(self, specs: list[ToolSpec]) -> tuple[list[ToolCall], str]:
        """Execute specs sequentially; returns the audit trail and context buffer."""
        tool_calls: list[ToolCall] = []
        sections: list[str] = []

        for spec in specs:
            result = self.registry.dispatch(spec)
            if result is None:
                logger.warning(f"Model requested unknown tool: {spec.name}")
                continue

            tool_calls.append(ToolCall(
                tool_name=spec.name,
                parameters=spec.parameters,
                output=result.output,
                success=result.success,
                error=result.error,
            ))

            if result.success:
                sections.append(f"\n\n--- {spec.name} Output ---\n{result.output}")
            else:
                logger.info(f"Tool {spec.name} did not contribute context: {result.error}")

        return tool_calls, "".join(sections)
