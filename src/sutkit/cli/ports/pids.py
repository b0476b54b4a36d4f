"""
sutkit ports pids command.

SUMMARY: List the processes listening on TCP ports
"""

from __future__ import annotations

import argparse
import asyncio

from sutkit.cli import OutputFormatter, add_json_flag, add_ports_arg
from sutkit.core.exceptions import SutkitError
from sutkit.core.process import describe_processes, resolve_pids_for_ports

SUMMARY = "List the processes listening on TCP ports"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_ports_arg(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        pids = asyncio.run(resolve_pids_for_ports(args.ports))
    except SutkitError as e:
        formatter.error(e)
        return 1

    processes = describe_processes(pids)
    if formatter.json_mode:
        formatter.json_output(
            {"ports": sorted(set(args.ports)), "processes": [p.to_dict() for p in processes]}
        )
        return 0

    if not processes:
        formatter.text("No process is listening on the given ports")
        return 0
    for proc in processes:
        formatter.text(f"{proc.pid}\t{proc.name or '?'}")
    return 0
