"""Shell command tool."""

import logging
import shlex

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, ErrorKind, Ok, Result
from splunk_query_agent.sandbox import CommandGuard, run_bounded
from splunk_query_agent.tools.base import Tool
from splunk_query_agent.tools.params import TerminalCommandParams

logger = logging.getLogger(__name__)


class TerminalCommandTool(Tool):
    """
    Runs an allow-listed, read-only command in the working directory.

    The command line passes CommandGuard, is split with shlex and spawned
    without a shell. Stdout is returned with stderr appended under a
    "Stderr:" label.
    """

    name = "terminal_command"
    description = "Execute shell commands with strict security restrictions"
    params_type = TerminalCommandParams

    def __init__(self, config: SandboxConfig, guard: CommandGuard | None = None) -> None:
        self.config = config
        self.guard = guard or CommandGuard()

    def run(self, params: TerminalCommandParams) -> Result[str]:
        logger.info(f"Attempting to execute command: {params.command}")

        checked = self.guard.validate(params.command)
        if isinstance(checked, Err):
            return checked

        try:
            argv = shlex.split(checked.value)
        except ValueError as e:
            return Err(ErrorKind.EXECUTION_FAILED, f"Could not parse command: {e}")

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
        if run.returncode != 0:
            detail = run.stderr.strip() or run.stdout.strip()
            return Err(
                ErrorKind.EXECUTION_FAILED,
                f"Command failed with exit code {run.returncode}: {detail}",
            )

        if run.stderr:
            logger.warning(f"Command stderr: {run.stderr}")
            return Ok(run.stdout + f"\nStderr: {run.stderr}")
        return Ok(run.stdout)
