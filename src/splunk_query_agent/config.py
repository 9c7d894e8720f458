"""
Configuration for the query agent.

All configuration is loaded from environment variables once at process
start. SandboxConfig in particular is frozen: every guard and tool shares
the same instance read-only for the lifetime of the process.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_ALLOWED_EXTENSIONS = (
    ".js,.ts,.py,.java,.xml,.json,.csv,.txt,.log,.yml,.yaml,"
    ".config,.properties,.ini"
)


def _split_extensions(raw: str) -> tuple[str, ...]:
    extensions = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if not item.startswith("."):
            item = f".{item}"
        extensions.append(item)
    return tuple(extensions)


@dataclass(frozen=True)
class SandboxConfig:
    """
    Process-wide sandbox policy.

    The working directory and sandbox_directory are always the permitted
    roots. Shell and grep invocations are bounded by command_timeout
    (seconds) and max_output_bytes.
    """
    max_file_size: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = _split_extensions(DEFAULT_ALLOWED_EXTENSIONS)
    sandbox_directory: str = "/tmp/splunk-agent-sandbox"
    command_timeout: float = 30.0
    max_output_bytes: int = 1024 * 1024
    max_index_depth: int = 3
    working_directory: str | None = None

    @classmethod
    def from_env(cls) -> "SandboxConfig":
        """Load configuration from environment variables."""
        return cls(
            max_file_size=int(os.getenv("MAX_FILE_SIZE", "10485760")),
            allowed_extensions=_split_extensions(
                os.getenv("ALLOWED_FILE_EXTENSIONS", DEFAULT_ALLOWED_EXTENSIONS)
            ),
            sandbox_directory=os.getenv("SANDBOX_DIRECTORY", "/tmp/splunk-agent-sandbox"),
            command_timeout=float(os.getenv("COMMAND_TIMEOUT", "30")),
            max_output_bytes=int(os.getenv("MAX_OUTPUT_BYTES", "1048576")),
            max_index_depth=int(os.getenv("MAX_INDEX_DEPTH", "3")),
        )

    @property
    def cwd(self) -> str:
        """Directory relative paths are resolved against."""
        return os.path.realpath(self.working_directory or os.getcwd())

    def allowed_roots(self) -> list[str]:
        """Canonical sandbox roots."""
        return [self.cwd, os.path.realpath(self.sandbox_directory)]

    def is_extension_allowed(self, extension: str) -> bool:
        """Empty extensions are always permitted."""
        return extension == "" or extension in self.allowed_extensions


@dataclass
class LLMConfig:
    """Configuration for the OpenAI-compatible model endpoint."""
    base_url: str
    api_key: str
    model: str
    temperature: float = 0.1
    max_tokens: int = 4000

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """Load configuration from environment variables."""
        return cls(
            base_url=os.getenv("LLM_BASE_URL", "http://localhost:8000/v1"),
            api_key=os.getenv("LLM_API_KEY", ""),
            model=os.getenv("LLM_MODEL", ""),
            temperature=float(os.getenv("LLM_TEMPERATURE", "0.1")),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", "4000")),
        )


@dataclass
class AgentSettings:
    """
    Limits for the orchestration loop.

    max_tool_calls caps how many tool specs from one model decision are
    dispatched. Tools run sequentially, so this bounds both latency and the
    number of processes a single request can spawn.
    """
    max_tool_calls: int = 5

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """Load configuration from environment variables."""
        return cls(max_tool_calls=int(os.getenv("AGENT_MAX_TOOL_CALLS", "5")))


@dataclass
class SearchConfig:
    """Which web search backend to use."""
    backend: str = "canned"
    api_key: str = ""

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Load configuration from environment variables."""
        return cls(
            backend=os.getenv("WEB_SEARCH_BACKEND", "canned").lower(),
            api_key=os.getenv("EXA_API_KEY", ""),
        )


@dataclass
class ServerConfig:
    """HTTP server settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    api_key: str = ""
    log_level: str = "info"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            environment=os.getenv("APP_ENV", "development"),
            api_key=os.getenv("API_KEY", ""),
            log_level=os.getenv("LOG_LEVEL", "info"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@dataclass
class AppConfig:
    """Combined configuration for the whole service."""
    sandbox: SandboxConfig
    llm: LLMConfig
    agent: AgentSettings
    search: SearchConfig
    server: ServerConfig

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load all configuration from environment variables."""
        return cls(
            sandbox=SandboxConfig.from_env(),
            llm=LLMConfig.from_env(),
            agent=AgentSettings.from_env(),
            search=SearchConfig.from_env(),
            server=ServerConfig.from_env(),
        )


def ensure_sandbox_directory(config: SandboxConfig) -> Path:
    """Create the sandbox directory if it does not exist yet."""
    path = Path(config.sandbox_directory)
    path.mkdir(parents=True, exist_ok=True)
    return path
