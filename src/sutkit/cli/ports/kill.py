"""
sutkit ports kill command.

SUMMARY: Signal every process listening on TCP ports
"""

from __future__ import annotations

import argparse
import asyncio

from sutkit.cli import OutputFormatter, add_json_flag, add_ports_arg, add_signal_arg
from sutkit.core.exceptions import SutkitError
from sutkit.core.process import kill_by_ports, resolve_signal

SUMMARY = "Signal every process listening on TCP ports"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_ports_arg(parser)
    add_signal_arg(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        sig = resolve_signal(args.signal)
        signaled = asyncio.run(kill_by_ports(args.ports, sig))
    except SutkitError as e:
        formatter.error(e)
        return 1

    pids = sorted(signaled)
    formatter.success(
        {"ports": sorted(set(args.ports)), "signal": sig.name, "pids": pids},
        f"Sent {sig.name} to {', '.join(str(p) for p in pids)}" if pids else "Nothing to kill",
    )
    return 0
