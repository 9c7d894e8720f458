"""Directory listing tool."""

import logging
import os
from pathlib import Path

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, Ok, Result
from splunk_query_agent.sandbox import PathGuard
from splunk_query_agent.tools.base import Tool, format_file_size
from splunk_query_agent.tools.params import FolderIndexParams

logger = logging.getLogger(__name__)

DIRECTORY_ICON = "📁"
DEFAULT_FILE_ICON = "📄"
FILE_ICONS: dict[str, str] = {
    ".py": "🐍",
    ".java": "☕",
    ".json": "📋",
    ".xml": "📋",
    ".csv": "📊",
    ".txt": "📝",
    ".log": "📜",
    ".yml": "⚙️",
    ".yaml": "⚙️",
    ".config": "⚙️",
    ".properties": "⚙️",
    ".ini": "⚙️",
}


class FolderIndexingTool(Tool):
    """
    Lists a sandboxed directory tree.

    Descends at most config.max_index_depth levels. Directories sort before
    files, then by name. Files whose extension is not whitelisted are still
    listed, flagged "(restricted)".
    """

    name = "folder_file_indexing"
    description = "List contents of directories with security restrictions"
    params_type = FolderIndexParams

    def __init__(self, config: SandboxConfig, guard: PathGuard | None = None) -> None:
        self.config = config
        self.guard = guard or PathGuard(config)

    def run(self, params: FolderIndexParams) -> Result[str]:
        logger.info(f"Indexing directory: {params.path}")

        checked = self.guard.validate_directory(params.path)
        if isinstance(checked, Err):
            return checked

        lines: list[str] = []
        self._list_directory(checked.value, depth=0, lines=lines)
        return Ok("\n".join(lines) + "\n" if lines else "(empty directory)\n")

    def _list_directory(self, directory: Path, depth: int, lines: list[str]) -> None:
        indent = "  " * depth
        try:
            with os.scandir(directory) as it:
                entries = sorted(
                    it,
                    key=lambda e: (not e.is_dir(follow_symlinks=False), e.name),
                )
        except OSError as e:
            lines.append(f"{indent}(error reading directory: {e.strerror or e})")
            return

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                lines.append(f"{indent}{DIRECTORY_ICON} {entry.name}/")
                if depth < self.config.max_index_depth:
                    self._list_directory(Path(entry.path), depth + 1, lines)
                else:
                    lines.append(f"{indent}  ... (max depth reached)")
                continue

            extension = os.path.splitext(entry.name)[1]
            try:
                size = format_file_size(entry.stat(follow_symlinks=False).st_size)
            except OSError:
                size = "unknown size"
            icon = FILE_ICONS.get(extension, DEFAULT_FILE_ICON)
            marker = "" if self.config.is_extension_allowed(extension) else " (restricted)"
            lines.append(f"{indent}{icon} {entry.name} ({size}){marker}")
