"""
sutkit system which command.

SUMMARY: Report which inspection tools are on PATH
"""

from __future__ import annotations

import argparse

from sutkit.cli import OutputFormatter, add_json_flag
from sutkit.core.process import command_exists

SUMMARY = "Report which inspection tools are on PATH"

DEFAULT_TOOLS = ("lsof", "netstat", "pgrep", "pkill", "kill")


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "tools",
        nargs="*",
        metavar="TOOL",
        help=f"Executables to look up (default: {' '.join(DEFAULT_TOOLS)})",
    )
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    tools = list(args.tools) or list(DEFAULT_TOOLS)
    found = {tool: command_exists(tool) for tool in tools}

    if formatter.json_mode:
        formatter.json_output({"tools": found})
    else:
        for tool, present in found.items():
            formatter.text_kv(tool, "yes" if present else "no", prefix="")
    return 0 if all(found.values()) else 1
