"""File read tool."""

import logging
from datetime import UTC, datetime
from pathlib import Path

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.sandbox import PathGuard
from splunk_query_agent.tools.base import Tool, format_file_size
from splunk_query_agent.tools.params import ReadFileParams

logger = logging.getLogger(__name__)

CONTENT_MARKER = "--- File Content ---\n"
HEX_PREVIEW_BYTES = 200


def strip_metadata_header(output: str) -> str:
    """Return the file body from a read_file output."""
    _, marker, body = output.partition(CONTENT_MARKER)
    return body if marker else output


class ReadFileTool(Tool):
    """
    Reads a sandboxed file.

    The file must pass the path, size and extension checks. Text is
    returned behind a metadata header. Content that is not valid UTF-8 is
    reported as a hex preview of its first bytes instead.
    """

    name = "read_file"
    description = "Read file contents with security and size restrictions"
    params_type = ReadFileParams

    def __init__(self, config: SandboxConfig, guard: PathGuard | None = None) -> None:
        self.config = config
        self.guard = guard or PathGuard(config)

    def run(self, params: ReadFileParams) -> Result[str]:
        logger.info(f"Reading file: {params.filepath}")

        checked = self.guard.validate_file(params.filepath)
        if isinstance(checked, Err):
            return checked

        path = checked.value
        limit = self.config.max_file_size
        with path.open("rb") as f:
            data = f.read(limit + 1)
        # The file may have grown since validate_file() checked its size.
        if len(data) > limit:
            return Err(
                ErrorKind.TOO_LARGE,
                f"File exceeds maximum allowed size ({limit} bytes)",
            )

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"{path} is not valid UTF-8, returning hex preview")
            return Ok(self._hex_preview(path, data))

        return Ok(self._metadata_header(path) + text)

    def _metadata_header(self, path: Path) -> str:
        stats = path.stat()
        modified = datetime.fromtimestamp(stats.st_mtime, tz=UTC).isoformat()
        return (
            f"File: {path}\n"
            f"Size: {format_file_size(stats.st_size)}\n"
            f"Last Modified: {modified}\n"
            f"Extension: {path.suffix or 'none'}\n"
            f"\n{CONTENT_MARKER}"
        )

    def _hex_preview(self, path: Path, data: bytes) -> str:
        return (
            f"File: {path}\n"
            f"Note: Binary file detected, showing first {HEX_PREVIEW_BYTES} bytes as hex:\n\n"
            f"{data[:HEX_PREVIEW_BYTES].hex()}\n\n"
            f"... (file is {len(data)} bytes total)"
        )
