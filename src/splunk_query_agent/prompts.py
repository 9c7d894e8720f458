"""
Prompt construction for the two model calls.

The system prompt carries the SPL primer, the analysed context files and
the conversation history. The tool-selection prompt asks for a JSON
decision; the final prompt asks for a QUERY/EXPLANATION answer.
"""

import json

from splunk_query_agent.tools.params import PARAMETER_SHAPES
from splunk_query_agent.types import FileAnalysis, QueryContext

MAX_PATTERNS = 10
MAX_FIELDS = 20
MAX_IMPORTS = 5

SYSTEM_PREAMBLE = """You are an expert Splunk query assistant. Your role is to generate accurate and efficient Splunk Search Processing Language (SPL) queries based on user requests and provided context.

## Your Capabilities:
1. Analyze code patterns, log formats, and data structures
2. Generate syntactically correct SPL queries
3. Provide clear explanations for your queries
4. Use appropriate Splunk commands and functions
5. Consider performance and best practices

## Key Splunk Commands and Concepts:
- Basic search: index=main sourcetype=access_log
- Filtering: where, search, regex
- Field extraction: rex, extract, eval
- Aggregation: stats, timechart, chart
- Sorting and formatting: sort, head, tail, table
- Time handling: earliest, latest, strftime, strptime
- Functions: count, sum, avg, max, min, dc (distinct count)

## Context Analysis:"""

SYSTEM_INSTRUCTIONS = """

## Instructions:
1. Generate a Splunk query that addresses the user's specific request
2. Use the analyzed context to inform field names, data patterns, and search criteria
3. Ensure the query is syntactically correct and follows SPL best practices
4. Provide a clear explanation of what the query does
5. Consider performance implications and suggest optimizations if relevant

## Response Format:
Provide your response in the following format:
QUERY: [Your SPL query here]

EXPLANATION: [Clear explanation of what the query does and why you chose this approach]"""

RESPONSE_FORMAT = """Provide the response in the exact format:
QUERY: [Your SPL query]

EXPLANATION: [Your explanation]"""


def _clip(items: list[str], limit: int) -> str:
    text = ", ".join(items[:limit])
    return text + "..." if len(items) > limit else text


def format_analysis(analysis: FileAnalysis) -> str:
    return (
        f"\n**File: {analysis.file_path}**\n"
        f"- Type: {analysis.file_type}\n"
        f"- Patterns: {_clip(analysis.patterns, MAX_PATTERNS)}\n"
        f"- Log Formats: {', '.join(analysis.log_formats)}\n"
        f"- Data Fields: {_clip(analysis.data_fields, MAX_FIELDS)}\n"
        f"- Imports: {_clip(analysis.imports, MAX_IMPORTS)}\n"
    )


def build_system_prompt(context: QueryContext) -> str:
    parts = [SYSTEM_PREAMBLE]

    if context.analysis_results:
        parts.append("\n\n### Analyzed Files:\n")
        parts.extend(format_analysis(analysis) for analysis in context.analysis_results)

    if context.conversation_history:
        parts.append("\n\n### Conversation History:\n")
        parts.extend(
            f"{turn.role.value}: {turn.content}\n" for turn in context.conversation_history
        )

    parts.append(SYSTEM_INSTRUCTIONS)
    return "".join(parts)


def build_tool_selection_prompt(
    context: QueryContext,
    tools: list[dict[str, str]],
) -> str:
    tool_lines = []
    for tool in tools:
        shape = PARAMETER_SHAPES.get(tool["name"])
        params = f" Parameters: {json.dumps(shape)}" if shape else ""
        tool_lines.append(f"- {tool['name']}: {tool['description']}.{params}")

    return (
        "Given the user's request and the context provided, determine which tools "
        "(if any) you need to use to gather additional information before generating "
        "a Splunk query.\n\n"
        "Available tools:\n"
        + "\n".join(tool_lines)
        + f"\n\nUser request: {context.user_prompt}\n\n"
        "Respond with a JSON object indicating which tools to use and their parameters, "
        'or "none" if no additional tools are needed.\n'
        'Format: {"tools": [{"name": "tool_name", "parameters": {...}}]} or {"tools": "none"}'
    )


def build_final_prompt(context: QueryContext, additional_context: str) -> str:
    prompt = f"Generate a Splunk query for: {context.user_prompt}"
    if additional_context:
        prompt += f"\n\nAdditional context from tools:{additional_context}"
    return prompt + "\n\n" + RESPONSE_FORMAT
