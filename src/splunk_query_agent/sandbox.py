"""
Capability sandbox shared by every tool.

PathGuard confines filesystem access to the configured roots and
CommandGuard confines shell execution to an allow-list of read-only
utilities. Both are pure validators returning Ok/Err; neither mutates
anything and both are safe to call concurrently.

This is a best-effort allow-list/deny-list layer, not OS-level isolation.
Known residual gap: CommandGuard only inspects the leading token and a set
of structural patterns, so flags of an allow-listed command that themselves
write or execute (find -delete, git -c core.pager=..., python -m ...) are
not caught.

run_bounded() is the single place processes are spawned: no shell, an
environment carrying only PATH, a wall-clock timeout and an output ceiling.
"""

import logging
import os
import re
import select
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from splunk_query_agent.config import SandboxConfig
from splunk_query_agent.result import Err, ErrorKind, Ok, Result

logger = logging.getLogger(__name__)


class PathGuard:
    """
    Validates filesystem paths against the sandbox roots.

    Checks run in a fixed order: canonicalise, textual traversal check,
    existence, root containment. Callers layer kind, size and extension
    checks via validate_file() and validate_directory().
    """

    def __init__(self, config: SandboxConfig) -> None:
        self.config = config

    def resolve(self, path: str) -> str:
        """Canonical absolute form of path, relative to the working directory."""
        return os.path.realpath(os.path.join(self.config.cwd, path))

    def validate(self, path: str) -> Result[Path]:
        if not isinstance(path, str) or not path.strip():
            return Err(ErrorKind.NOT_FOUND, "Path must be a non-empty string")
        if "\x00" in path:
            return Err(ErrorKind.NOT_FOUND, "Path contains a null byte")

        canonical = self.resolve(path)

        # Also applied after canonicalisation, so names such as "notes~" or
        # "a..b" are rejected too.
        if self._has_traversal_marker(path, canonical):
            return Err(ErrorKind.TRAVERSAL_REJECTED, "Path traversal not allowed")

        try:
            os.stat(canonical)
        except OSError:
            return Err(ErrorKind.NOT_FOUND, "Path does not exist or is not accessible")

        if not self._within_roots(canonical):
            return Err(ErrorKind.OUTSIDE_SANDBOX, "Access to this path is not allowed")

        return Ok(Path(canonical))

    def validate_directory(self, path: str) -> Result[Path]:
        checked = self.validate(path)
        if isinstance(checked, Err):
            return checked
        if not checked.value.is_dir():
            return Err(ErrorKind.NOT_A_DIRECTORY, "Path is not a directory")
        return checked

    def validate_file(self, path: str) -> Result[Path]:
        checked = self.validate(path)
        if isinstance(checked, Err):
            return checked

        target = checked.value
        if not target.is_file():
            return Err(ErrorKind.NOT_A_FILE, "Path is not a file")

        size = target.stat().st_size
        if size > self.config.max_file_size:
            return Err(
                ErrorKind.TOO_LARGE,
                f"File size ({size} bytes) exceeds maximum allowed size "
                f"({self.config.max_file_size} bytes)",
            )

        extension = target.suffix
        if not self.config.is_extension_allowed(extension):
            return Err(ErrorKind.EXTENSION_REJECTED, f"File extension '{extension}' is not allowed")

        return checked

    def _has_traversal_marker(self, raw: str, canonical: str) -> bool:
        if raw.lstrip().startswith("~"):
            return True
        if ".." in Path(raw).parts:
            return True
        return ".." in canonical or "~" in canonical

    def _within_roots(self, canonical: str) -> bool:
        for root in self.config.allowed_roots():
            if canonical == root or canonical.startswith(root.rstrip(os.sep) + os.sep):
                return True
        return False


# Any match rejects the whole command line; nothing is stripped or repaired.
DANGEROUS_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[;&|`$(){}\[\]]"), "shell metacharacter"),
    (re.compile(r"\.\."), "directory traversal"),
    (re.compile(r"/dev/|/proc/|/sys/"), "system directory"),
    (re.compile(r"rm\s+-rf"), "recursive force delete"),
    (re.compile(r"(^|\s)(sudo|su)(\s|$)"), "privilege escalation"),
    (re.compile(r"\b(chmod|chown)\b"), "permission change"),
    (re.compile(r"\bwget\b|\bcurl\b.*-o"), "download to file"),
    (re.compile(r"[<>]"), "redirection"),
]

ALLOWED_COMMANDS: frozenset[str] = frozenset({
    "ls", "dir", "pwd", "whoami", "date", "uptime",
    "find", "locate", "which", "type",
    "head", "tail", "cat", "wc", "sort", "uniq",
    "ps", "top", "df", "du", "free",
    "node", "npm", "python", "python3", "java",
    "git",
})


class CommandGuard:
    """
    Validates a shell command line.

    The deny-list runs first and independently of the allow-list: an
    allow-listed command containing a dangerous pattern is still rejected.
    """

    def __init__(
        self,
        allowed_commands: frozenset[str] = ALLOWED_COMMANDS,
        dangerous_patterns: list[tuple[re.Pattern[str], str]] | None = None,
    ) -> None:
        self.allowed_commands = allowed_commands
        self.dangerous_patterns = dangerous_patterns or DANGEROUS_PATTERNS

    def validate(self, command_line: str) -> Result[str]:
        if not isinstance(command_line, str) or not command_line.strip():
            return Err(ErrorKind.EMPTY_COMMAND, "Command cannot be empty")

        command = command_line.strip()

        for pattern, label in self.dangerous_patterns:
            if pattern.search(command):
                logger.warning(f"Command rejected ({label}): {command}")
                return Err(ErrorKind.DANGEROUS_PATTERN, "Command contains dangerous patterns")

        base_command = command.split(maxsplit=1)[0]
        if base_command not in self.allowed_commands:
            return Err(
                ErrorKind.NOT_WHITELISTED,
                f"Command '{base_command}' is not in the allowed list",
            )

        return Ok(command)


@dataclass
class CompletedRun:
    """Captured output of a bounded process run."""
    returncode: int
    stdout: str
    stderr: str


def restricted_env() -> dict[str, str]:
    """Environment for child processes: PATH only."""
    return {"PATH": os.environ.get("PATH", os.defpath)}


READ_CHUNK = 64 * 1024


def _kill(process: subprocess.Popen) -> None:
    process.kill()
    process.wait()


def run_bounded(
    argv: list[str],
    cwd: str,
    timeout: float,
    max_output: int,
) -> Result[CompletedRun]:
    """
    Run argv without a shell under the sandbox's process limits.

    stdout and stderr are read incrementally; the child is killed as soon
    as their combined size passes max_output or the deadline passes, so at
    most max_output + 1 bytes are ever buffered.
    """
    try:
        process = subprocess.Popen(
            argv,
            cwd=cwd,
            env=restricted_env(),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            shell=False,
        )
    except (OSError, ValueError) as e:
        return Err(ErrorKind.EXECUTION_FAILED, f"Failed to start command: {e}")

    timed_out = Err(ErrorKind.EXECUTION_FAILED, f"Command timed out after {timeout:g} seconds")
    stdout = bytearray()
    stderr = bytearray()
    buffers = {process.stdout.fileno(): stdout, process.stderr.fileno(): stderr}
    open_fds = list(buffers)
    deadline = time.monotonic() + timeout
    total = 0

    try:
        while open_fds:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                _kill(process)
                return timed_out

            ready, _, _ = select.select(open_fds, [], [], remaining)
            for fd in ready:
                data = os.read(fd, min(READ_CHUNK, max_output - total + 1))
                if not data:
                    open_fds.remove(fd)
                    continue
                total += len(data)
                if total > max_output:
                    logger.warning(f"Killing {argv[0]}: output exceeded {max_output} bytes")
                    _kill(process)
                    return Err(
                        ErrorKind.EXECUTION_FAILED,
                        f"Command output exceeded the {max_output} byte limit",
                    )
                buffers[fd].extend(data)

        try:
            returncode = process.wait(timeout=max(deadline - time.monotonic(), 0))
        except subprocess.TimeoutExpired:
            _kill(process)
            return timed_out
    finally:
        process.stdout.close()
        process.stderr.close()

    return Ok(CompletedRun(
        returncode=returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    ))
