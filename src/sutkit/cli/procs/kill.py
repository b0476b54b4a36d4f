"""
sutkit procs kill command.

SUMMARY: Signal processes matching a name/argument pattern
"""

from __future__ import annotations

import argparse
import asyncio

from sutkit.cli import OutputFormatter, add_json_flag, add_signal_arg
from sutkit.core.exceptions import SutkitError
from sutkit.core.process import KillTarget, kill_by_pattern, resolve_signal

SUMMARY = "Signal processes matching a name/argument pattern"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("--name", help="Process name to match")
    parser.add_argument("--args", help="Arguments to match (matches the full command line)")
    parser.add_argument(
        "--no-exact",
        dest="exact",
        action="store_false",
        help="Match substrings instead of the whole name/command line",
    )
    parser.add_argument("--invert", action="store_true", help="Select processes that do NOT match")
    parser.add_argument("--children", action="store_true", help="Also signal direct children of matches")
    add_signal_arg(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    target = KillTarget(
        name=args.name,
        args=args.args,
        exact=args.exact,
        invert=args.invert,
        children=args.children,
    )
    if not target.pattern:
        formatter.error(ValueError("Refusing to kill every process: give --name and/or --args"))
        return 1

    try:
        sig = resolve_signal(args.signal)
        asyncio.run(kill_by_pattern(target, sig))
    except SutkitError as e:
        formatter.error(e)
        return 1

    formatter.success(
        {"pattern": target.pattern, "signal": sig.name, "children": target.children},
        f"Sent {sig.name} to processes matching '{target.pattern}'",
    )
    return 0
