"""
Web search tool and its pluggable backends.

The tool itself has no local-system access; it forwards the query to a
SearchBackend. CannedSearchBackend answers from a fixed SPL reference and
is the default. ExaSearchBackend queries the Exa search API. Swapping
backends does not touch the registry or the agent.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from splunk_query_agent.config import SearchConfig
from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.tools.base import Tool
from splunk_query_agent.tools.params import WebSearchParams

logger = logging.getLogger(__name__)

EXA_SEARCH_URL = "https://api.exa.ai/search"

SPL_BEST_PRACTICES = """
## Splunk Query Best Practices

### Common Search Commands:
- search: Basic search command
- stats: Statistical operations
- timechart: Time-based charting
- eval: Field evaluation and calculation
- where: Conditional filtering
- sort: Result sorting
- head/tail: Limit results

### Query Structure:
1. Search terms (index, sourcetype, keywords)
2. Filtering (where, search)
3. Field extraction and evaluation (eval, rex)
4. Aggregation (stats, timechart)
5. Formatting (sort, head, tail)

### Examples:
- index=main sourcetype=access_log status=404 | stats count by client_ip
- index=security sourcetype=firewall action=blocked | timechart count by src_ip
- index=app_logs error | eval hour=strftime(_time, "%H") | stats count by hour
"""

SPL_GUIDE = """
## Splunk Search Processing Language (SPL) Guide

### Field Extraction:
- rex: Regular expression extraction
- extract: Automatic field extraction
- eval: Create calculated fields

### Aggregation Functions:
- count, sum, avg, min, max
- dc (distinct count)
- values, list
- percentile

### Time Functions:
- strftime, strptime
- earliest, latest
- bucket, span
"""


class SearchBackend(ABC):
    """Anything that can answer a search query with prose."""

    @abstractmethod
    def search(self, query: str) -> str:
        """
        Run a search.

        Raises:
            Exception: If the lookup fails; the tool converts it to a
                failed ToolResult.
        """


class CannedSearchBackend(SearchBackend):
    """Answers from a fixed SPL reference without any network access."""

    def search(self, query: str) -> str:
        lowered = query.lower()
        if "splunk" in lowered and "query" in lowered:
            return SPL_BEST_PRACTICES
        if "spl" in lowered or "search processing language" in lowered:
            return SPL_GUIDE
        return (
            f'Canned search results for query: "{query}". Configure '
            "WEB_SEARCH_BACKEND=exa for live results about Splunk queries "
            "and best practices."
        )


class ExaSearchBackend(SearchBackend):
    """Live results from the Exa search API."""

    def __init__(
        self,
        api_key: str,
        num_results: int = 5,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.num_results = min(num_results, 10)
        self.timeout = timeout
        self._transport = transport

    def search(self, query: str) -> str:
        payload: dict[str, Any] = {
            "query": query,
            "numResults": self.num_results,
            "text": True,
        }
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(
                EXA_SEARCH_URL,
                headers={
                    "x-api-key": self.api_key,
                    "Content-Type": "application/json",
                },
                json=payload,
            )
            response.raise_for_status()
            data = response.json()

        results = data.get("results", [])
        if not results:
            return f"No results found for: {query}"

        output_lines = [f"Search results for: {query}\n"]
        for i, result in enumerate(results, 1):
            title = result.get("title") or "No title"
            text = (result.get("text") or "")[:300]
            output_lines.append(f"## Result {i}: {title}")
            output_lines.append(f"URL: {result.get('url', '')}")
            if result.get("publishedDate"):
                output_lines.append(f"Published: {result['publishedDate']}")
            if text:
                output_lines.append(f"\n{text}...")
            output_lines.append("")

        return "\n".join(output_lines)


def create_search_backend(config: SearchConfig) -> SearchBackend:
    """Pick the backend named in the configuration."""
    if config.backend == "exa":
        if not config.api_key:
            logger.warning("WEB_SEARCH_BACKEND=exa but EXA_API_KEY is not set, using canned results")
            return CannedSearchBackend()
        return ExaSearchBackend(api_key=config.api_key)
    if config.backend != "canned":
        logger.warning(f"Unknown web search backend '{config.backend}', using canned results")
    return CannedSearchBackend()


class WebSearchTool(Tool):
    """Searches the web for Splunk documentation and query patterns."""

    name = "web_search"
    description = "Search the web for Splunk documentation, best practices, and query patterns"
    params_type = WebSearchParams

    def __init__(self, backend: SearchBackend | None = None) -> None:
        self.backend = backend or CannedSearchBackend()

    def run(self, params: WebSearchParams) -> Result[str]:
        logger.info(f"Executing web search for: {params.query}")
        try:
            return Ok(self.backend.search(params.query))
        except httpx.HTTPStatusError as e:
            return Err(
                ErrorKind.EXECUTION_FAILED,
                f"Search API error: {e.response.status_code} - {e.response.text}",
            )
        except httpx.RequestError as e:
            return Err(ErrorKind.EXECUTION_FAILED, f"Search request error: {e}")
