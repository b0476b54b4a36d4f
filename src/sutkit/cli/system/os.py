"""
sutkit system os command.

SUMMARY: Show the detected OS family
"""

from __future__ import annotations

import argparse

from sutkit.cli import OutputFormatter, add_json_flag
from sutkit.core.platform import get_os_family

SUMMARY = "Show the detected OS family"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    family = get_os_family()
    if formatter.json_mode:
        formatter.json_output({"os_family": family.value})
    else:
        formatter.text(family.value)
    return 0
