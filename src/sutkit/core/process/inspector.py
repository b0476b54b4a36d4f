"""Process inspection with psutil.

Used to report what is about to be killed and to check whether a PID is
still alive after signaling it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import psutil


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    name: str = ""
    cmdline: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"pid": self.pid, "name": self.name, "cmdline": list(self.cmdline)}


def is_process_alive(pid: int) -> bool:
    """Check if a process is alive by PID.

    Zombies count as gone: they have exited and only wait to be reaped.
    """
    try:
        proc = psutil.Process(int(pid))
        return proc.status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # Permission denied implies the process exists but is protected
        return True


def describe_process(pid: int) -> ProcessInfo | None:
    """Return name and command line of ``pid``, or None when it is gone."""
    try:
        proc = psutil.Process(int(pid))
    except psutil.NoSuchProcess:
        return None

    try:
        name = proc.name() or ""
    except psutil.AccessDenied:
        name = ""
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        return None

    try:
        cmdline = proc.cmdline()
    except psutil.AccessDenied:
        cmdline = []
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        return None

    return ProcessInfo(pid=proc.pid, name=name, cmdline=list(cmdline))


def describe_processes(pids: Iterable[int]) -> list[ProcessInfo]:
    """Describe ``pids`` sorted by PID; PIDs that are gone keep an empty name."""
    out: list[ProcessInfo] = []
    for pid in sorted(set(int(p) for p in pids)):
        info = describe_process(pid)
        out.append(info if info is not None else ProcessInfo(pid=pid))
    return out


__all__ = [
    "ProcessInfo",
    "is_process_alive",
    "describe_process",
    "describe_processes",
]
