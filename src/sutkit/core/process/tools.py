"""External tool execution.

Inspection tools (lsof, netstat, pgrep, pkill, kill) are run without a shell,
capturing their output as text. Callers decide which exit statuses are errors.
"""
from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from sutkit.core.exceptions import ToolExecutionError, ToolUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output_is_empty(self) -> bool:
        return not self.stdout.strip() and not self.stderr.strip()


ToolRunner = Callable[[Sequence[str]], Awaitable[ToolResult]]


def command_exists(name: str) -> bool:
    """Return True when ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None


def _tool_timeout() -> float:
    from sutkit.core.config.domains import ProcessConfig

    return ProcessConfig().tool_timeout_seconds


async def run_tool(argv: Sequence[str], *, timeout: float | None = None) -> ToolResult:
    """Run ``argv`` and capture its exit status and output.

    Raises:
        ToolUnavailableError: the executable does not exist.
        ToolExecutionError: the tool did not finish within ``timeout`` seconds.
    """
    argv = tuple(str(a) for a in argv)
    if not argv:
        raise ValueError("argv must not be empty")
    timeout = _tool_timeout() if timeout is None else float(timeout)

    logger.debug("Running %s", " ".join(argv))
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ToolUnavailableError(f"{argv[0]} not found", context={"argv": list(argv)}) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=max(0.1, timeout))
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        raise ToolExecutionError(
            f"{argv[0]} did not finish within {timeout}s",
            argv=argv,
        ) from None

    result = ToolResult(
        argv=argv,
        returncode=proc.returncode if proc.returncode is not None else 0,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    logger.debug("%s exited with %s", argv[0], result.returncode)
    return result


def tool_failure(result: ToolResult, what: str | None = None) -> ToolExecutionError:
    """Build the error raised for an unexpected exit status of ``result``."""
    detail = (result.stderr or result.stdout).strip()
    message = f"{what or result.argv[0]} failed with exit code {result.returncode}"
    if detail:
        message = f"{message}: {detail}"
    return ToolExecutionError(
        message,
        argv=result.argv,
        returncode=result.returncode,
        stderr=result.stderr,
    )


__all__ = [
    "ToolResult",
    "ToolRunner",
    "command_exists",
    "run_tool",
    "tool_failure",
]
