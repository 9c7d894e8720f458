"""HTTP API for the query agent."""

from splunk_query_agent.api.server import create_app, run_server

__all__ = ["create_app", "run_server"]
