from __future__ import annotations

import asyncio
import signal as _signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence, Union

StartupMessages = Union[str, Sequence[str], None]


def normalize_startup_messages(value: StartupMessages) -> tuple[str, ...] | None:
    """Normalize startup messages to a non-empty tuple, or None.

    A single string becomes a one-element tuple; None and empty sequences mean
    there is no readiness check.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    messages = tuple(str(m) for m in value)
    return messages or None


@dataclass(frozen=True)
class StartServerOptions:
    command: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] | None = None
    cwd: Path | None = None
    startup_messages: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.command, str) or not self.command.strip():
            raise ValueError("command is required")
        object.__setattr__(self, "args", tuple(str(a) for a in self.args))
        if self.cwd is not None:
            object.__setattr__(self, "cwd", Path(self.cwd))
        object.__setattr__(self, "startup_messages", normalize_startup_messages(self.startup_messages))

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "StartServerOptions":
        messages = raw.get("startup_messages")
        if messages is None:
            messages = raw.get("startupMessages")
        env = raw.get("env")
        return cls(
            command=raw.get("command") or "",
            args=tuple(raw.get("args") or ()),
            env=dict(env) if env is not None else None,
            cwd=raw.get("cwd"),
            startup_messages=messages,
        )

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]


@dataclass(eq=False)
class ServerProcess:
    """A spawned server and the output captured while it was starting.

    ``exited`` resolves with the return code as soon as the child exits, even
    while a grandchild still holds the inherited pipes open.
    ``process.wait()`` only returns once those pipes are closed.
    """

    process: asyncio.subprocess.Process
    exited: asyncio.Future[int] | None = None
    transport: asyncio.SubprocessTransport | None = None
    accumulated_stdout: str = ""
    accumulated_stderr: str = ""

    async def wait_exited(self) -> int:
        """Wait for the child process itself to exit and return its return code."""
        if self.exited is None:
            return await self.process.wait()
        return await asyncio.shield(self.exited)

    def close(self) -> None:
        """Close the pipes of an exited server."""
        if self.transport is not None and self.returncode is not None:
            self.transport.close()

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def stdin(self) -> asyncio.StreamWriter | None:
        return self.process.stdin

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        return self.process.stdout

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self.process.stderr

    @property
    def returncode(self) -> int | None:
        return self.process.returncode

    @property
    def exit_code(self) -> int | None:
        """Exit status, or None while running or when ended by a signal."""
        code = self.process.returncode
        return code if code is not None and code >= 0 else None

    @property
    def terminating_signal(self) -> str | None:
        return signal_name_for_returncode(self.process.returncode)

    @property
    def combined_output(self) -> str:
        return self.accumulated_stdout + self.accumulated_stderr


def signal_name_for_returncode(returncode: int | None) -> str | None:
    """Return ``"SIGTERM"`` style names for negative asyncio return codes."""
    if returncode is None or returncode >= 0:
        return None
    try:
        return _signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


@dataclass(frozen=True)
class StartedRunning:
    """The server is up (or nothing was expected and the timeout passed)."""

    server: ServerProcess

    @property
    def pid(self) -> int:
        return self.server.pid


@dataclass(frozen=True)
class ExitedCleanly:
    """The server exited on its own and no startup messages were expected."""

    stdout: str
    stderr: str
    exit_code: int | None
    signal: str | None = None


StartOutcome = Union[StartedRunning, ExitedCleanly]


__all__ = [
    "StartupMessages",
    "normalize_startup_messages",
    "StartServerOptions",
    "ServerProcess",
    "signal_name_for_returncode",
    "StartedRunning",
    "ExitedCleanly",
    "StartOutcome",
]
