"""Entry point: python -m splunk_query_agent"""

import argparse
import dataclasses

from splunk_query_agent.api.server import run_server
from splunk_query_agent.config import AppConfig


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Splunk query agent API server")
    parser.add_argument("--host", help="Bind address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port (default: $PORT or 3000)")
    parser.add_argument("--log-level", help="Log level (default: $LOG_LEVEL or info)")
    args = parser.parse_args(argv)

    config = AppConfig.from_env()
    overrides = {
        key: value
        for key, value in (("host", args.host), ("port", args.port), ("log_level", args.log_level))
        if value is not None
    }
    if overrides:
        config = dataclasses.replace(config, server=dataclasses.replace(config.server, **overrides))

    run_server(config)


if __name__ == "__main__":
    main()
