"""Process discovery and termination."""
from __future__ import annotations

from .inspector import ProcessInfo, describe_process, describe_processes, is_process_alive
from .patterns import KillTarget, kill_by_pattern
from .ports import (
    kill_by_ports,
    parse_lsof_output,
    parse_netstat_output,
    resolve_pids_for_ports,
)
from .signals import SignalLike, resolve_signal, send_signal, signal_flag
from .tools import ToolResult, command_exists, run_tool

__all__ = [
    "ProcessInfo",
    "describe_process",
    "describe_processes",
    "is_process_alive",
    "KillTarget",
    "kill_by_pattern",
    "kill_by_ports",
    "parse_lsof_output",
    "parse_netstat_output",
    "resolve_pids_for_ports",
    "SignalLike",
    "resolve_signal",
    "send_signal",
    "signal_flag",
    "ToolResult",
    "command_exists",
    "run_tool",
]
