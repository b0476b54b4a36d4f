"""Resolve which processes listen on TCP ports, and kill them.

``lsof`` is preferred on every OS family; ``netstat`` is the fallback where it
can report socket owners (redhat and ubuntu). Each tool's output grammar has
its own parser so it can be table-tested without running anything.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Union

from sutkit.core.exceptions import PidResolutionError, ToolUnavailableError
from sutkit.core.platform import OSFamily, get_os_family

from .signals import SignalLike, resolve_signal, send_signal
from .tools import ToolRunner, command_exists, run_tool, tool_failure

logger = logging.getLogger(__name__)

LSOF_ARGV: tuple[str, ...] = ("lsof", "-n", "-P", "-iTCP", "-sTCP:LISTEN")

NETSTAT_ARGV: Mapping[OSFamily, tuple[str, ...]] = {
    OSFamily.REDHAT: ("sudo", "netstat", "--listening", "--numeric", "--program", "--notrim", "-t"),
    OSFamily.UBUNTU: ("netstat", "--listening", "--numeric", "--program", "--wide", "-t"),
}

PortsLike = Union[int, Iterable[int]]


def normalize_ports(ports: PortsLike) -> frozenset[int]:
    if isinstance(ports, bool):
        raise TypeError(f"Invalid port: {ports!r}")
    if isinstance(ports, int):
        return frozenset({ports})
    return frozenset(int(p) for p in ports)


def _port_of(address: str) -> int | None:
    tail = address[address.rfind(":") + 1:]
    try:
        return int(tail)
    except ValueError:
        return None


def _parse_pid(raw: str) -> int | None:
    try:
        pid = int(raw)
    except ValueError:
        return None
    return pid if pid > 0 else None


def parse_lsof_output(output: str, ports: PortsLike) -> set[int]:
    """Extract the PIDs listening on ``ports`` from ``lsof`` output.

    The first line is the column header. PID is the second column and the
    local address (``host:port``) the ninth.

    Raises:
        PidResolutionError: a listener on a requested port has no usable PID.
    """
    wanted = normalize_ports(ports)
    pids: set[int] = set()
    for line in output.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 9:
            continue
        port = _port_of(fields[8])
        if port is None or port not in wanted:
            continue
        pid = _parse_pid(fields[1])
        if pid is None:
            raise PidResolutionError(port)
        pids.add(pid)
    return pids


def parse_netstat_output(output: str, ports: PortsLike) -> set[int]:
    """Extract the PIDs listening on ``ports`` from ``netstat -t`` output.

    Two header lines are skipped and only ``tcp`` rows are considered (not
    ``tcp6``). The local address is the fourth column and ``PID/Program`` the
    seventh; netstat prints ``-`` there when the owner is not visible to us.

    Raises:
        PidResolutionError: a listener on a requested port has no usable PID.
    """
    wanted = normalize_ports(ports)
    pids: set[int] = set()
    for line in output.splitlines()[2:]:
        fields = line.split()
        if len(fields) < 4 or fields[0] != "tcp":
            continue
        port = _port_of(fields[3])
        if port is None or port not in wanted:
            continue
        owner = fields[6] if len(fields) > 6 else "-"
        pid = None if owner.startswith("-") else _parse_pid(owner.split("/", 1)[0])
        if pid is None:
            raise PidResolutionError(port)
        pids.add(pid)
    return pids


async def _resolve_with_lsof(ports: frozenset[int], runner: ToolRunner) -> set[int]:
    result = await runner(LSOF_ARGV)
    if result.returncode != 0:
        # lsof exits 1 without output when nothing is listening at all.
        if result.output_is_empty:
            return set()
        raise tool_failure(result, "lsof")
    return parse_lsof_output(result.stdout, ports)


async def _resolve_with_netstat(
    ports: frozenset[int], runner: ToolRunner, os_family: OSFamily
) -> set[int]:
    argv = NETSTAT_ARGV.get(os_family)
    if argv is None:
        raise ToolUnavailableError(
            f"netstat cannot report socket owners on {os_family.value}",
            context={"os_family": os_family.value},
        )
    result = await runner(argv)
    if result.returncode != 0:
        raise tool_failure(result, "netstat")
    return parse_netstat_output(result.stdout, ports)


async def resolve_pids_for_ports(
    ports: PortsLike,
    *,
    os_family: OSFamily | None = None,
    runner: ToolRunner | None = None,
    which: Callable[[str], bool] | None = None,
) -> set[int]:
    """Return the PIDs of the processes listening on ``ports``.

    ``runner`` and ``which`` default to running real tools and looking them up
    on PATH; tests inject fakes.
    """
    wanted = normalize_ports(ports)
    runner = runner or run_tool
    which = which or command_exists

    if which("lsof"):
        pids = await _resolve_with_lsof(wanted, runner)
    elif which("netstat"):
        pids = await _resolve_with_netstat(wanted, runner, os_family or get_os_family())
    else:
        raise ToolUnavailableError(
            "no supported tool: neither lsof nor netstat is available",
            context={"tools": ["lsof", "netstat"]},
        )

    logger.debug("Ports %s are owned by PIDs %s", sorted(wanted), sorted(pids))
    return pids


async def kill_by_ports(
    ports: PortsLike,
    signal: SignalLike | None = None,
    *,
    os_family: OSFamily | None = None,
    runner: ToolRunner | None = None,
    which: Callable[[str], bool] | None = None,
) -> set[int]:
    """Signal every process listening on ``ports``.

    Returns the PIDs the signal was delivered to. A process that exits before
    it is signaled is skipped; any other delivery failure raises
    SignalDeliveryError and leaves the remaining PIDs alone.
    """
    sig = resolve_signal(signal)
    pids = await resolve_pids_for_ports(ports, os_family=os_family, runner=runner, which=which)

    signaled: set[int] = set()
    for pid in sorted(pids):
        if send_signal(pid, sig):
            signaled.add(pid)

    if signaled:
        logger.info("Sent %s to %s", sig.name, ", ".join(str(p) for p in sorted(signaled)))
    return signaled


__all__ = [
    "LSOF_ARGV",
    "NETSTAT_ARGV",
    "normalize_ports",
    "parse_lsof_output",
    "parse_netstat_output",
    "resolve_pids_for_ports",
    "kill_by_ports",
]
