"""Common CLI argument registration utilities.

This module provides reusable argument registration functions to reduce
duplication across CLI commands.
"""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for project root override.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override project root path (where .sutkit/config lives)",
    )


def add_signal_arg(parser: argparse.ArgumentParser) -> None:
    """Add --signal option (name or number; default from process.default_signal)."""
    parser.add_argument(
        "--signal",
        "-s",
        default=None,
        help="Signal to send, e.g. TERM, SIGKILL or 9 (default: process.default_signal)",
    )


def add_ports_arg(parser: argparse.ArgumentParser) -> None:
    """Add one or more positional TCP ports."""
    parser.add_argument(
        "ports",
        nargs="+",
        type=int,
        metavar="PORT",
        help="TCP port",
    )


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_signal_arg",
    "add_ports_arg",
]
