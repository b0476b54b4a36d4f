from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence


class SutkitError(Exception):
    """Base exception for sutkit."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class StartupError(SutkitError):
    """Raised when a server never reached its running state.

    The output captured up to the failure is attached as ``stdout`` and
    ``stderr`` so callers can diagnose without re-running the server.
    """

    def __init__(
        self,
        message: str = "",
        *,
        stdout: str = "",
        stderr: str = "",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.stdout = stdout
        self.stderr = stderr


class SpawnError(StartupError):
    """Raised when the server executable cannot be spawned."""


class StartupTimeoutError(StartupError, TimeoutError):
    """Raised when the startup messages were not seen before the timeout."""

    def __init__(
        self,
        message: str = "",
        *,
        stdout: str = "",
        stderr: str = "",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        StartupError.__init__(self, message, stdout=stdout, stderr=stderr, context=context)
        TimeoutError.__init__(self, message)


class PrematureExitError(StartupError):
    """Raised when the server exits before printing its startup messages."""

    def __init__(
        self,
        message: str = "",
        *,
        exit_code: int | None = None,
        signal: str | None = None,
        stdout: str = "",
        stderr: str = "",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["exit_code"] = exit_code
        ctx["signal"] = signal
        super().__init__(message, stdout=stdout, stderr=stderr, context=ctx)
        self.exit_code = exit_code
        self.signal = signal


class ToolUnavailableError(SutkitError, RuntimeError):
    """Raised when no usable inspection tool exists for this OS."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SutkitError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ToolExecutionError(SutkitError, RuntimeError):
    """Raised when an external tool fails with an unexpected exit status."""

    def __init__(
        self,
        message: str = "",
        *,
        argv: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["argv"] = list(argv)
        ctx["returncode"] = returncode
        SutkitError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr


class PidResolutionError(SutkitError):
    """Raised when a port has a listener whose owning PID cannot be determined."""

    def __init__(self, port: int, message: str | None = None) -> None:
        super().__init__(message or f"No PID available for port {port}", context={"port": port})
        self.port = port


class SignalDeliveryError(SutkitError):
    """Raised when a signal cannot be delivered for a reason other than the target being gone."""

    def __init__(self, pid: int, signal: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Could not send {signal} to PID {pid}",
            context={"pid": pid, "signal": signal},
        )
        self.pid = pid
        self.signal = signal


class InvalidSignalError(SutkitError, ValueError):
    """Raised for signal names or numbers unknown to the host OS."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SutkitError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class ConfigValidationError(SutkitError, ValueError):
    """Raised when the merged configuration does not match its schema."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SutkitError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class TemplateRenderError(SutkitError, ValueError):
    """Raised when a config template cannot be parsed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SutkitError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "SutkitError",
    "StartupError",
    "SpawnError",
    "StartupTimeoutError",
    "PrematureExitError",
    "ToolUnavailableError",
    "ToolExecutionError",
    "PidResolutionError",
    "SignalDeliveryError",
    "InvalidSignalError",
    "ConfigValidationError",
    "TemplateRenderError",
]
