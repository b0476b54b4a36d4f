"""Start a server process, wait until it is ready, and stop it again.

``start_server`` races three triggers and settles exactly once:

- every startup message has been printed (stdout or stderr);
- the process exited;
- the startup timeout elapsed.

Whichever trigger settles first cancels the timer and the other tasks before
producing the outcome, so nothing keeps reading the server's pipes once the
caller owns them. An observed exit cancels the timer straight away and owns
the outcome while the pipes drain.
"""
from __future__ import annotations

import asyncio
import codecs
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Mapping, Union

from sutkit.core.config.domains import ServerConfig
from sutkit.core.exceptions import PrematureExitError, SpawnError, StartupTimeoutError
from sutkit.core.process.signals import SignalLike, resolve_signal

from .models import (
    ExitedCleanly,
    ServerProcess,
    StartedRunning,
    StartOutcome,
    StartServerOptions,
)

logger = logging.getLogger(__name__)

_READ_CHUNK = 4096
_STREAM_LIMIT = 2**16

OptionsLike = Union[StartServerOptions, Mapping[str, Any]]


class _ServerProtocol(asyncio.subprocess.SubprocessStreamProtocol):
    """Stream protocol that reports the child's exit without waiting for its pipes."""

    def __init__(self, limit: int, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__(limit=limit, loop=loop)
        self.exited: asyncio.Future[int] = loop.create_future()

    def process_exited(self) -> None:
        returncode = self._transport.get_returncode()
        super().process_exited()
        if not self.exited.done():
            self.exited.set_result(returncode)


async def _spawn(opts: StartServerOptions) -> ServerProcess:
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.subprocess_exec(
        lambda: _ServerProtocol(_STREAM_LIMIT, loop),
        *opts.argv,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(opts.env) if opts.env is not None else None,
        cwd=str(opts.cwd) if opts.cwd is not None else None,
    )
    process = asyncio.subprocess.Process(transport, protocol, loop)
    return ServerProcess(process, exited=protocol.exited, transport=transport)


class _RaceState(Enum):
    PENDING = "pending"
    EXITED = "exited"
    SETTLED = "settled"


class _StartupRace:
    """One-shot resolution of a single ``start_server`` call."""

    def __init__(
        self,
        server: ServerProcess,
        expected: tuple[str, ...] | None,
        *,
        timeout: float,
        exit_drain_seconds: float,
        kill_signal: SignalLike,
        stop_grace_seconds: float,
    ) -> None:
        self.server = server
        self.expected = expected
        self.timeout = timeout
        self.exit_drain_seconds = exit_drain_seconds
        self.kill_signal = kill_signal
        self.stop_grace_seconds = stop_grace_seconds

        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[StartOutcome] = self._loop.create_future()
        self._state = _RaceState.PENDING
        self._timer: asyncio.TimerHandle | None = None
        self._readers: list[asyncio.Task[None]] = []
        self._exit_watcher: asyncio.Task[None] | None = None
        self._reaper: asyncio.Task[None] | None = None

    @property
    def settled(self) -> bool:
        return self._state is _RaceState.SETTLED

    async def run(self) -> StartOutcome:
        process = self.server.process
        self._readers = [
            asyncio.create_task(self._read(process.stdout, "stdout")),
            asyncio.create_task(self._read(process.stderr, "stderr")),
        ]
        self._exit_watcher = asyncio.create_task(self._watch_exit())
        self._timer = self._loop.call_later(self.timeout, self._on_timeout)

        try:
            return await self._future
        except asyncio.CancelledError:
            if self._settle(_RaceState.PENDING, _RaceState.EXITED):
                logger.debug("Startup of PID %s abandoned by the caller", self.server.pid)
            self._terminate()
            raise

    # ----- transitions -----

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _claim_exit(self) -> bool:
        """Move from PENDING to EXITED; readers and the timer can no longer settle."""
        if self._state is not _RaceState.PENDING:
            return False
        self._state = _RaceState.EXITED
        self._cancel_timer()
        return True

    def _settle(self, *sources: _RaceState) -> bool:
        """Move to SETTLED from one of ``sources`` (PENDING when none are given).

        Returns False when the race is in any other state.
        """
        if self._state not in (sources or (_RaceState.PENDING,)):
            return False
        self._state = _RaceState.SETTLED

        self._cancel_timer()
        current = asyncio.current_task()
        for task in (*self._readers, self._exit_watcher):
            if task is not None and task is not current and not task.done():
                task.cancel()
        return True

    def _resolve(self, outcome: StartOutcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    def _fail(self, error: BaseException) -> None:
        if not self._future.done():
            self._future.set_exception(error)

    def _terminate(self) -> None:
        if self.server.returncode is None:
            stop_server(self.server.pid, self.kill_signal)

    # ----- triggers -----

    def _all_messages_seen(self) -> bool:
        assert self.expected is not None
        out = self.server.accumulated_stdout
        err = self.server.accumulated_stderr
        return all(msg in out or msg in err for msg in self.expected)

    def _append(self, stream_name: str, text: str) -> None:
        if not text:
            return
        if stream_name == "stdout":
            self.server.accumulated_stdout += text
        else:
            self.server.accumulated_stderr += text

    async def _read(self, stream: asyncio.StreamReader | None, stream_name: str) -> None:
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while not self.settled:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                self._append(stream_name, decoder.decode(b"", final=True))
                return
            self._append(stream_name, decoder.decode(chunk))
            if self.expected and self._state is _RaceState.PENDING and self._all_messages_seen():
                if self._settle():
                    logger.info("Server PID %s is ready", self.server.pid)
                    self._resolve(StartedRunning(self.server))
                return

    async def _watch_exit(self) -> None:
        await self.server.wait_exited()
        if not self._claim_exit():
            return
        pending = [task for task in self._readers if not task.done()]
        if pending:
            await asyncio.wait(pending, timeout=self.exit_drain_seconds)
        if not self._settle(_RaceState.EXITED):
            return
        server = self.server
        server.close()

        if self.expected:
            logger.info(
                "Server PID %s exited during startup (exit code %s, signal %s)",
                server.pid,
                server.exit_code,
                server.terminating_signal,
            )
            self._fail(
                PrematureExitError(
                    f"Server finished with exit code {server.exit_code} "
                    f"and signal {server.terminating_signal}",
                    exit_code=server.exit_code,
                    signal=server.terminating_signal,
                    stdout=server.accumulated_stdout,
                    stderr=server.accumulated_stderr,
                    context={"pid": server.pid},
                )
            )
            return

        logger.info("Server PID %s exited with code %s", server.pid, server.exit_code)
        self._resolve(
            ExitedCleanly(
                stdout=server.accumulated_stdout,
                stderr=server.accumulated_stderr,
                exit_code=server.exit_code,
                signal=server.terminating_signal,
            )
        )

    def _on_timeout(self) -> None:
        if not self._settle():
            return
        if not self.expected:
            logger.info("Server PID %s still running after %ss", self.server.pid, self.timeout)
            self._resolve(StartedRunning(self.server))
            return

        logger.info("Server PID %s not ready after %ss, terminating it", self.server.pid, self.timeout)
        error = StartupTimeoutError(
            f"Server couldn't be started before {self.timeout} seconds",
            stdout=self.server.accumulated_stdout,
            stderr=self.server.accumulated_stderr,
            context={"pid": self.server.pid, "timeout": self.timeout},
        )
        self._reaper = self._loop.create_task(self._reap_then_fail(error))

    async def _reap_then_fail(self, error: StartupTimeoutError) -> None:
        try:
            await _stop_and_reap(self.server, self.kill_signal, self.stop_grace_seconds)
        finally:
            self._fail(error)


def _coerce_options(options: OptionsLike) -> StartServerOptions:
    if isinstance(options, StartServerOptions):
        return options
    return StartServerOptions.from_raw(options)


async def start_server(options: OptionsLike, timeout: float | None = None) -> StartOutcome:
    """Spawn a server and wait for it to start.

    Args:
        options: what to run; a mapping is converted with ``StartServerOptions.from_raw``.
        timeout: seconds to wait; defaults to ``server.startup_timeout_seconds``.

    Returns:
        StartedRunning when every startup message was seen, or when none were
        expected and the timeout passed. ExitedCleanly when none were expected
        and the process exited first.

    Raises:
        SpawnError: the executable could not be started.
        PrematureExitError: the process exited before printing its startup messages.
        StartupTimeoutError: the startup messages did not appear in time. The
            server has been stopped and reaped by then.
    """
    opts = _coerce_options(options)
    cfg = ServerConfig()
    timeout = cfg.startup_timeout_seconds if timeout is None else float(timeout)

    logger.debug("Starting %s", " ".join(opts.argv))
    try:
        server = await _spawn(opts)
    except OSError as exc:
        raise SpawnError(
            f"Could not start {opts.command}: {exc}",
            context={"command": opts.command, "args": list(opts.args)},
        ) from exc

    race = _StartupRace(
        server,
        opts.startup_messages,
        timeout=timeout,
        exit_drain_seconds=cfg.exit_drain_seconds,
        kill_signal=cfg.timeout_kill_signal,
        stop_grace_seconds=cfg.stop_grace_seconds,
    )
    return await race.run()


def stop_server(pid: int | None, signal: SignalLike | None = None) -> None:
    """Send ``signal`` (default ``server.stop_signal``) to ``pid``, best effort.

    A falsy ``pid`` is a no-op. Delivery failures (the process is already gone,
    or belongs to someone else) are logged and ignored.
    """
    if not pid:
        return
    sig = resolve_signal(signal, default=ServerConfig().stop_signal)
    try:
        os.kill(int(pid), sig)
    except OSError as exc:
        logger.debug("Could not send %s to PID %s: %s", sig.name, pid, exc)
        return
    logger.debug("Sent %s to PID %s", sig.name, pid)


async def _stop_and_reap(server: ServerProcess, signal: SignalLike | None, grace_seconds: float) -> None:
    if server.returncode is None:
        stop_server(server.pid, signal)
        try:
            await asyncio.wait_for(server.wait_exited(), timeout=max(0.1, grace_seconds))
        except asyncio.TimeoutError:
            logger.debug("PID %s ignored the stop signal, killing it", server.pid)
            stop_server(server.pid, "SIGKILL")
            await server.wait_exited()
    server.close()


@asynccontextmanager
async def running_server(
    options: OptionsLike,
    timeout: float | None = None,
    *,
    stop_signal: SignalLike | None = None,
) -> AsyncIterator[StartOutcome]:
    """Start a server for the duration of an ``async with`` block.

    The outcome of ``start_server`` is yielded. A server left running is
    stopped on exit and given ``server.stop_grace_seconds`` to terminate
    before it is killed.
    """
    outcome = await start_server(options, timeout)
    try:
        yield outcome
    finally:
        if isinstance(outcome, StartedRunning) and outcome.server.returncode is None:
            await _stop_and_reap(outcome.server, stop_signal, ServerConfig().stop_grace_seconds)


__all__ = ["start_server", "stop_server", "running_server"]
