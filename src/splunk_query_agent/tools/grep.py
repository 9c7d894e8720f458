"""Recursive pattern search tool."""

import logging

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.sandbox import PathGuard, run_bounded
from splunk_query_agent.tools.base import Tool
from splunk_query_agent.tools.params import GrepParams

logger = logging.getLogger(__name__)

NO_MATCHES = "No matches found"


class FileSystemGrepTool(Tool):
    """
    Searches a sandboxed directory tree with grep.

    The invocation is an argv list, never a shell string: the pattern goes
    behind -e and the path behind --, so neither can be read as an option
    or expanded by a shell. Only files with whitelisted extensions are
    searched. grep's "no match" exit status is a success.
    """

    name = "file_system_grep"
    description = "Search for patterns in files using grep with security restrictions"
    params_type = GrepParams

    def __init__(self, config: SandboxConfig, guard: PathGuard | None = None) -> None:
        self.config = config
        self.guard = guard or PathGuard(config)

    def build_argv(self, pattern: str, path: str) -> list[str]:
        argv = ["grep", "-r", "-n", "-H"]
        for extension in self.config.allowed_extensions:
            argv.append(f"--include=*{extension}")
        argv.extend(["-e", pattern, "--", path])
        return argv

    def run(self, params: GrepParams) -> Result[str]:
        logger.info(f"Executing grep search for pattern: {params.pattern} in path: {params.path}")

        checked = self.guard.validate(params.path)
        if isinstance(checked, Err):
            return checked

        argv = self.build_argv(params.pattern, str(checked.value))
        logger.debug(f"Executing command: {argv}")

        completed = run_bounded(
            argv,
            cwd=self.config.cwd,
            timeout=self.config.command_timeout,
            max_output=self.config.max_output_bytes,
        )
        if isinstance(completed, Err):
            return completed

        run = completed.value
        if run.returncode == 1:
            return Ok(NO_MATCHES)
        if run.returncode != 0:
            return Err(
                ErrorKind.EXECUTION_FAILED,
                f"grep failed with exit code {run.returncode}: {run.stderr.strip()}",
            )

        if run.stderr:
            logger.warning(f"Grep stderr: {run.stderr}")
        return Ok(run.stdout or NO_MATCHES)
