from __future__ import annotations

import os
import signal

import pytest

from sutkit.core.exceptions import InvalidSignalError, SignalDeliveryError
from sutkit.core.process import signals as signals_mod
from sutkit.core.process.signals import resolve_signal, send_signal, signal_flag


@pytest.mark.parametrize(
    "value, expected",
    [
        ("SIGTERM", signal.SIGTERM),
        ("term", signal.SIGTERM),
        (" KILL ", signal.SIGKILL),
        ("9", signal.SIGKILL),
        (2, signal.SIGINT),
        (signal.SIGHUP, signal.SIGHUP),
    ],
)
def test_resolve_signal_accepts_names_and_numbers(value, expected) -> None:
    assert resolve_signal(value) is expected


@pytest.mark.parametrize("value", ["SIGNOPE", "", 10_000, True, 1.5])
def test_resolve_signal_rejects_unknown_values(value) -> None:
    with pytest.raises(InvalidSignalError):
        resolve_signal(value)


def test_resolve_signal_defaults_to_sigterm() -> None:
    assert resolve_signal(None) is signal.SIGTERM


def test_resolve_signal_default_comes_from_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SUTKIT_PROCESS__DEFAULT_SIGNAL", "SIGUSR1")
    assert resolve_signal() is signal.SIGUSR1


def test_resolve_signal_explicit_default_wins_over_config() -> None:
    assert resolve_signal(None, default="HUP") is signal.SIGHUP


def test_signal_flag_renders_short_name() -> None:
    assert signal_flag("SIGKILL") == "-KILL"
    assert signal_flag(15) == "-TERM"


def test_send_signal_reports_missing_process(monkeypatch: pytest.MonkeyPatch) -> None:
    def _kill(pid: int, sig: int) -> None:
        raise ProcessLookupError(3, "No such process")

    monkeypatch.setattr(signals_mod.os, "kill", _kill)

    assert send_signal(424242, "TERM") is False


def test_send_signal_wraps_permission_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def _kill(pid: int, sig: int) -> None:
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr(signals_mod.os, "kill", _kill)

    with pytest.raises(SignalDeliveryError, match="SIGTERM to PID 1") as excinfo:
        send_signal(1, "TERM")
    assert excinfo.value.pid == 1
    assert excinfo.value.signal == "SIGTERM"


def test_send_signal_delivers_to_live_process() -> None:
    assert send_signal(os.getpid(), signal.SIGCONT) is True
