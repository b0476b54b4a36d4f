from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import sys
import time
from pathlib import Path

import pytest

from sutkit.core.exceptions import PrematureExitError, SpawnError, StartupError, StartupTimeoutError
from sutkit.core.process.inspector import is_process_alive
from sutkit.core.sut import (
    ExitedCleanly,
    StartedRunning,
    StartServerOptions,
    running_server,
    start_server,
    stop_server,
)


def _py(code: str, **kwargs) -> dict:
    return {"command": sys.executable, "args": ["-c", code], **kwargs}


async def _kill(outcome: StartedRunning) -> None:
    stop_server(outcome.pid, "KILL")
    await outcome.server.process.wait()


_LAUNCHER = (
    "import subprocess, sys\n"
    "p = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)'])\n"
    "print(p.pid, flush=True)\n"
)


def _kill_background(stdout: str) -> None:
    """Kill the grandchild whose PID a launcher printed first."""
    first = stdout.split()[:1]
    if first:
        with contextlib.suppress(ProcessLookupError):
            os.kill(int(first[0]), signal.SIGKILL)


def _wait_until_gone(pid: int, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not is_process_alive(pid):
            return True
        time.sleep(0.05)
    return False


@pytest.mark.asyncio
async def test_startup_message_resolves_running() -> None:
    code = "import time; print('booting'); print('READY', flush=True); time.sleep(30)"

    outcome = await start_server(_py(code, startup_messages=["READY"]), timeout=5)

    try:
        assert isinstance(outcome, StartedRunning)
        assert "READY" in outcome.server.accumulated_stdout
        assert outcome.server.returncode is None
        assert outcome.server.exit_code is None
    finally:
        await _kill(outcome)


@pytest.mark.asyncio
async def test_startup_messages_may_come_from_both_streams_in_any_order() -> None:
    code = (
        "import sys, time\n"
        "print('db up', file=sys.stderr, flush=True)\n"
        "time.sleep(0.05)\n"
        "print('http up', flush=True)\n"
        "time.sleep(30)\n"
    )

    outcome = await start_server(_py(code, startupMessages=["http up", "db up"]), timeout=5)

    try:
        assert isinstance(outcome, StartedRunning)
        assert "db up" in outcome.server.accumulated_stderr
        assert "http up" in outcome.server.accumulated_stdout
    finally:
        await _kill(outcome)


@pytest.mark.asyncio
async def test_caller_keeps_reading_output_after_startup() -> None:
    code = (
        "import time\n"
        "print('READY', flush=True)\n"
        "time.sleep(0.3)\n"
        "print('after', flush=True)\n"
    )

    outcome = await start_server(_py(code, startup_messages="READY"), timeout=5)

    assert isinstance(outcome, StartedRunning)
    line = await asyncio.wait_for(outcome.server.stdout.readline(), timeout=5)
    assert line == b"after\n"
    assert "after" not in outcome.server.accumulated_stdout
    await outcome.server.process.wait()


@pytest.mark.asyncio
async def test_exit_without_messages_is_exited_cleanly() -> None:
    code = "import sys; print('bye'); print('note', file=sys.stderr)"

    outcome = await start_server(_py(code), timeout=5)

    assert outcome == ExitedCleanly(stdout="bye\n", stderr="note\n", exit_code=0, signal=None)


@pytest.mark.asyncio
async def test_exit_without_messages_reports_nonzero_code() -> None:
    outcome = await start_server(_py("import sys; sys.exit(4)"), timeout=5)

    assert isinstance(outcome, ExitedCleanly)
    assert outcome.exit_code == 4


@pytest.mark.asyncio
async def test_exit_by_signal_reports_signal_name() -> None:
    code = "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"

    outcome = await start_server(_py(code), timeout=5)

    assert isinstance(outcome, ExitedCleanly)
    assert outcome.exit_code is None
    assert outcome.signal == "SIGTERM"


@pytest.mark.asyncio
async def test_exit_before_messages_is_premature_exit() -> None:
    code = "import sys; print('partial'); print('oops', file=sys.stderr); sys.exit(1)"

    with pytest.raises(PrematureExitError, match="exit code 1") as excinfo:
        await start_server(_py(code, startup_messages=["READY"]), timeout=5)

    err = excinfo.value
    assert err.exit_code == 1
    assert err.signal is None
    assert err.stdout == "partial\n"
    assert err.stderr == "oops\n"
    assert isinstance(err, StartupError)


@pytest.mark.asyncio
async def test_timeout_without_messages_is_running() -> None:
    outcome = await start_server(_py("import time; time.sleep(30)"), timeout=0.1)

    try:
        assert isinstance(outcome, StartedRunning)
        assert outcome.server.returncode is None
    finally:
        await _kill(outcome)


@pytest.mark.asyncio
async def test_timeout_with_messages_fails_and_terminates_server() -> None:
    code = "import time; print('starting', flush=True); time.sleep(30)"

    with pytest.raises(StartupTimeoutError, match="0.5 seconds") as excinfo:
        await start_server(_py(code, startup_messages=["READY"]), timeout=0.5)

    err = excinfo.value
    assert err.stdout == "starting\n"
    assert err.stderr == ""
    assert isinstance(err, TimeoutError)
    assert _wait_until_gone(err.context["pid"])


@pytest.mark.asyncio
async def test_default_timeout_comes_from_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUTKIT_SERVER__STARTUP_TIMEOUT_SECONDS", "0.1")

    started = time.monotonic()
    outcome = await start_server(_py("import time; time.sleep(30)"))

    try:
        assert isinstance(outcome, StartedRunning)
        assert time.monotonic() - started < 3
    finally:
        await _kill(outcome)


@pytest.mark.asyncio
async def test_missing_executable_is_spawn_error(tmp_path: Path) -> None:
    with pytest.raises(SpawnError) as excinfo:
        await start_server({"command": str(tmp_path / "no-such-server"), "startup_messages": "READY"})

    assert excinfo.value.stdout == ""
    assert excinfo.value.stderr == ""


@pytest.mark.asyncio
async def test_env_and_cwd_are_passed_to_the_server(tmp_path: Path) -> None:
    code = "import os; print(os.environ['GREETING']); print(os.getcwd())"
    options = StartServerOptions(
        command=sys.executable,
        args=("-c", code),
        env={**os.environ, "GREETING": "hola"},
        cwd=tmp_path,
    )

    outcome = await start_server(options, timeout=5)

    assert isinstance(outcome, ExitedCleanly)
    greeting, cwd = outcome.stdout.splitlines()
    assert greeting == "hola"
    assert Path(cwd).resolve() == tmp_path.resolve()


@pytest.mark.asyncio
async def test_multibyte_characters_split_across_chunks_survive() -> None:
    code = (
        "import sys, time\n"
        "sys.stdout.buffer.write(b'caf\\xc3'); sys.stdout.flush()\n"
        "time.sleep(0.1)\n"
        "sys.stdout.buffer.write(b'\\xa9 READY\\n'); sys.stdout.flush()\n"
        "time.sleep(30)\n"
    )

    outcome = await start_server(_py(code, startup_messages="café READY"), timeout=5)

    try:
        assert isinstance(outcome, StartedRunning)
        assert outcome.server.accumulated_stdout == "café READY\n"
    finally:
        await _kill(outcome)


@pytest.mark.asyncio
async def test_cancelled_start_propagates_cancellation() -> None:
    task = asyncio.create_task(
        start_server(_py("import time; time.sleep(30)", startup_messages="READY"), timeout=30)
    )
    await asyncio.sleep(0.2)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


def test_stop_server_ignores_missing_pids() -> None:
    stop_server(0)
    stop_server(None)

    proc_pid = os.spawnv(os.P_NOWAIT, sys.executable, [sys.executable, "-c", "pass"])
    os.waitpid(proc_pid, 0)
    stop_server(proc_pid)


@pytest.mark.asyncio
async def test_stop_server_terminates_running_server() -> None:
    outcome = await start_server(_py("import time; time.sleep(30)"), timeout=0.1)
    assert isinstance(outcome, StartedRunning)

    stop_server(outcome.pid)
    returncode = await asyncio.wait_for(outcome.server.process.wait(), timeout=5)

    assert returncode == -15
    assert outcome.server.terminating_signal == "SIGTERM"


@pytest.mark.asyncio
async def test_running_server_stops_server_on_exit() -> None:
    code = "import time; print('READY', flush=True); time.sleep(30)"

    async with running_server(_py(code, startup_messages="READY"), timeout=5) as outcome:
        assert isinstance(outcome, StartedRunning)
        assert outcome.server.returncode is None

    assert outcome.server.returncode is not None
    assert outcome.server.terminating_signal == "SIGTERM"


@pytest.mark.asyncio
async def test_running_server_yields_exit_outcome_untouched() -> None:
    async with running_server(_py("print('done')"), timeout=5) as outcome:
        assert isinstance(outcome, ExitedCleanly)
        assert outcome.stdout == "done\n"


@pytest.mark.asyncio
async def test_exit_beats_timeout_while_grandchild_holds_pipes() -> None:
    started = time.monotonic()
    outcome = await start_server(_py(_LAUNCHER + "sys.exit(3)\n"), timeout=5)
    elapsed = time.monotonic() - started

    try:
        assert isinstance(outcome, ExitedCleanly)
        assert outcome.exit_code == 3
        assert outcome.signal is None
        assert elapsed < 4
    finally:
        _kill_background(outcome.stdout)


@pytest.mark.asyncio
async def test_premature_exit_detected_while_grandchild_holds_pipes() -> None:
    started = time.monotonic()
    with pytest.raises(PrematureExitError, match="exit code 3") as excinfo:
        await start_server(_py(_LAUNCHER + "sys.exit(3)\n", startup_messages="READY"), timeout=5)
    elapsed = time.monotonic() - started

    try:
        assert excinfo.value.exit_code == 3
        assert elapsed < 4
    finally:
        _kill_background(excinfo.value.stdout)


@pytest.mark.asyncio
async def test_timer_expiring_during_exit_drain_does_not_change_outcome(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUTKIT_SERVER__EXIT_DRAIN_SECONDS", "3")

    outcome = await start_server(_py(_LAUNCHER + "sys.exit(0)\n"), timeout=1)

    try:
        assert isinstance(outcome, ExitedCleanly)
        assert outcome.exit_code == 0
    finally:
        _kill_background(outcome.stdout)


@pytest.mark.asyncio
async def test_timer_expiring_during_exit_drain_still_reports_premature_exit(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SUTKIT_SERVER__EXIT_DRAIN_SECONDS", "3")

    with pytest.raises(PrematureExitError) as excinfo:
        await start_server(_py(_LAUNCHER + "sys.exit(2)\n", startup_messages="READY"), timeout=1)

    try:
        assert not isinstance(excinfo.value, StartupTimeoutError)
        assert excinfo.value.exit_code == 2
    finally:
        _kill_background(excinfo.value.stdout)


@pytest.mark.asyncio
async def test_timed_out_server_is_reaped_before_the_error() -> None:
    code = "import time; print('starting', flush=True); time.sleep(30)"

    with pytest.raises(StartupTimeoutError) as excinfo:
        await start_server(_py(code, startup_messages="READY"), timeout=0.3)

    with pytest.raises(ChildProcessError):
        os.waitpid(excinfo.value.context["pid"], os.WNOHANG)


@pytest.mark.asyncio
async def test_timed_out_server_ignoring_sigterm_is_killed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUTKIT_SERVER__STOP_GRACE_SECONDS", "0.2")
    code = (
        "import signal, time\n"
        "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
        "print('starting', flush=True)\n"
        "time.sleep(30)\n"
    )

    with pytest.raises(StartupTimeoutError) as excinfo:
        await start_server(_py(code, startup_messages="READY"), timeout=0.5)

    with pytest.raises(ChildProcessError):
        os.waitpid(excinfo.value.context["pid"], os.WNOHANG)
