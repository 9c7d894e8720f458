"""
FastAPI server for the Splunk query agent.

This server provides:
- POST /api/query-agent to generate a query from a prompt and context files
- GET /api/query-agent/health and GET /api/query-agent/tools
- GET / (service description) and GET /health (process health)

Each request runs the agent in a worker thread, so concurrent requests are
independent and never block the event loop. They share only the read-only
tool registry and sandbox configuration.
"""

import asyncio
import hmac
import logging
import time
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from splunk_query_agent import __version__
from splunk_query_agent.agent import QueryAgent
from splunk_query_agent.api.schemas import QueryRequestModel
from splunk_query_agent.config import AppConfig, ensure_sandbox_directory
from splunk_query_agent.llm import LLMClient
from splunk_query_agent.tools import create_default_registry, create_search_backend

logger = logging.getLogger(__name__)

SERVICE_NAME = "Splunk Query AI Agent"
SERVICE_DESCRIPTION = "AI agent for generating Splunk queries using LLMs and contextual analysis"


def configure_logging(level: str = "info") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_agent(config: AppConfig) -> QueryAgent:
    """Wire the default agent: LLM client, sandboxed tools, analyzer."""
    ensure_sandbox_directory(config.sandbox)
    registry = create_default_registry(
        config.sandbox,
        search_backend=create_search_backend(config.search),
    )
    return QueryAgent(
        llm_client=LLMClient(config.llm),
        registry=registry,
        settings=config.agent,
    )


def _error_body(message: str) -> dict[str, str]:
    return {"status": "error", "error_message": message}


def require_api_key(request: Request) -> None:
    """Check X-API-Key or a bearer token when an API key is configured."""
    expected = request.app.state.config.server.api_key
    if not expected:
        return

    provided = request.headers.get("X-API-Key")
    if not provided:
        authorization = request.headers.get("Authorization", "")
        provided = authorization.removeprefix("Bearer ").strip()

    if not provided or not hmac.compare_digest(provided, expected):
        logger.warning("Invalid or missing API key")
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


router = APIRouter(prefix="/api/query-agent", dependencies=[Depends(require_api_key)])


@router.post("")
@router.post("/")
async def generate_query(body: QueryRequestModel, request: Request) -> dict[str, Any]:
    """Generate a Splunk query."""
    logger.info("Received query generation request")
    agent: QueryAgent = request.app.state.agent

    loop = asyncio.get_running_loop()
    response = await loop.run_in_executor(None, agent.generate_query, body.to_agent_request())

    logger.info(f"Query generation completed with status {response.status.value}")
    return response.to_dict()


@router.get("/health")
async def agent_health() -> dict[str, str]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
    }


@router.get("/tools")
async def list_tools(request: Request) -> dict[str, Any]:
    """List the registered tools."""
    agent: QueryAgent = request.app.state.agent
    return {"status": "success", "tools": agent.registry.describe()}


def create_app(config: AppConfig | None = None, agent: QueryAgent | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Service configuration; loaded from the environment if omitted
        agent: Pre-built agent, used by tests to inject stub models and tools
    """
    config = config or AppConfig.from_env()

    app = FastAPI(title=SERVICE_NAME, version=__version__)
    app.state.config = config
    app.state.agent = agent or build_agent(config)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        logger.warning(f"Invalid request body: {details}")
        return JSONResponse(
            status_code=400,
            content=_error_body(f"Validation error: {', '.join(details)}"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=_error_body(message))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error")
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "name": SERVICE_NAME,
            "version": __version__,
            "description": SERVICE_DESCRIPTION,
            "endpoints": {
                "POST /api/query-agent": "Generate Splunk query",
                "GET /api/query-agent/health": "Health check",
                "GET /api/query-agent/tools": "List available tools",
            },
        }

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
            "environment": config.server.environment,
        }

    app.include_router(router)
    return app


def run_server(config: AppConfig | None = None) -> None:
    """Run the API server."""
    import uvicorn

    config = config or AppConfig.from_env()
    configure_logging(config.server.log_level)

    if not config.llm.api_key:
        logger.warning("LLM_API_KEY not set - model calls may fail")

    app = create_app(config)
    logger.info(f"{SERVICE_NAME} starting on {config.server.host}:{config.server.port}")
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )
