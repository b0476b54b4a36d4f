"""Signal name resolution and delivery.

Signals may be given as ``signal.Signals``, an int, or a name with or without
the ``SIG`` prefix (``"SIGTERM"``, ``"term"``). ``None`` means the configured
default (``process.default_signal``).
"""
from __future__ import annotations

import logging
import os
import signal as _signal
from typing import Union

from sutkit.core.exceptions import InvalidSignalError, SignalDeliveryError

logger = logging.getLogger(__name__)

SignalLike = Union[str, int, _signal.Signals]


def _default_signal() -> SignalLike:
    from sutkit.core.config.domains import ProcessConfig

    return ProcessConfig().default_signal


def resolve_signal(value: SignalLike | None = None, *, default: SignalLike | None = None) -> _signal.Signals:
    if value is None:
        value = default if default is not None else _default_signal()

    if isinstance(value, _signal.Signals):
        return value
    if isinstance(value, bool):
        raise InvalidSignalError(f"Invalid signal: {value!r}")
    if isinstance(value, int):
        try:
            return _signal.Signals(value)
        except ValueError:
            raise InvalidSignalError(f"Unknown signal number: {value}") from None
    if isinstance(value, str):
        text = value.strip().upper()
        if text.isdigit():
            return resolve_signal(int(text))
        name = text if text.startswith("SIG") else f"SIG{text}"
        try:
            return _signal.Signals[name]
        except KeyError:
            raise InvalidSignalError(f"Unknown signal name: {value}") from None
    raise InvalidSignalError(f"Invalid signal: {value!r}")


def signal_flag(value: SignalLike | None = None) -> str:
    """Render a signal as the ``-NAME`` flag understood by kill/pkill."""
    sig = resolve_signal(value)
    return f"-{sig.name[3:]}"


def send_signal(pid: int, value: SignalLike | None = None) -> bool:
    """Send a signal to ``pid``.

    Returns True when delivered and False when the process no longer exists.
    Any other failure raises SignalDeliveryError.
    """
    sig = resolve_signal(value)
    try:
        os.kill(int(pid), sig)
    except ProcessLookupError:
        logger.debug("PID %s already gone, %s not sent", pid, sig.name)
        return False
    except OSError as exc:
        raise SignalDeliveryError(int(pid), sig.name, f"Could not send {sig.name} to PID {pid}: {exc}") from exc
    logger.debug("Sent %s to PID %s", sig.name, pid)
    return True


__all__ = ["SignalLike", "resolve_signal", "signal_flag", "send_signal"]
