"""Find and signal processes by name/argument pattern with pgrep and pkill."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .signals import SignalLike, signal_flag
from .tools import ToolRunner, run_tool, tool_failure

logger = logging.getLogger(__name__)

# pgrep/pkill/kill exit status meaning "no process matched".
NO_MATCH_EXIT = 1


@dataclass(frozen=True)
class KillTarget:
    """A pgrep-style process pattern.

    ``exact`` requires the whole name (or command line, when ``args`` is set)
    to match; ``invert`` selects the processes that do *not* match;
    ``children`` extends the selection to the direct children of every match.
    """

    name: str | None = None
    args: str | None = None
    exact: bool = True
    invert: bool = False
    children: bool = False

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "KillTarget":
        return cls(
            name=raw.get("name") or None,
            args=raw.get("args") or None,
            exact=bool(raw.get("exact", True)),
            invert=bool(raw.get("invert", False)),
            children=bool(raw.get("children", False)),
        )

    @property
    def pattern(self) -> str:
        return " ".join(part for part in (self.name, self.args) if part)

    def match_args(self) -> list[str]:
        """Return the pgrep/pkill flags and pattern selecting this target."""
        flags: list[str] = []
        if self.args:
            flags.append("-f")
        if self.invert:
            flags.append("-v")
        if self.exact:
            flags.append("-x")
        return [*flags, self.pattern]


def _pids_from_output(output: str) -> list[int]:
    pids: list[int] = []
    for line in output.splitlines():
        line = line.strip()
        if line:
            pids.append(int(line))
    return pids


def _unique(pids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    out: list[int] = []
    for pid in pids:
        if pid not in seen:
            seen.add(pid)
            out.append(pid)
    return out


async def _match_parents(target: KillTarget, runner: ToolRunner) -> list[int]:
    result = await runner(["pgrep", *target.match_args()])
    if result.returncode == NO_MATCH_EXIT:
        return []
    if result.returncode != 0:
        raise tool_failure(result, "pgrep")
    return _pids_from_output(result.stdout)


async def _match_children(parents: list[int], runner: ToolRunner) -> list[int]:
    result = await runner(["pgrep", "-P", ",".join(str(p) for p in parents)])
    if result.returncode == NO_MATCH_EXIT:
        return []
    if result.returncode != 0:
        raise tool_failure(result, "pgrep -P")
    return _pids_from_output(result.stdout)


async def _signal_all(pids: list[int], flag: str, runner: ToolRunner) -> None:
    result = await runner(["kill", flag, *(str(p) for p in pids)])
    # Exit 1 here means the targets exited between discovery and signaling.
    if result.returncode not in (0, NO_MATCH_EXIT):
        raise tool_failure(result, "kill")


async def kill_by_pattern(
    target: KillTarget | Mapping[str, Any],
    signal: SignalLike | None = None,
    *,
    runner: ToolRunner | None = None,
) -> None:
    """Signal every process matching ``target``.

    Without ``children`` a single ``pkill`` does the work. With ``children``
    the parents are matched with ``pgrep``, their children with
    ``pgrep -P``, and the union is signaled with one ``kill``. No match at any
    step is success.

    Raises:
        ToolExecutionError: a tool failed with a status other than "no match".
    """
    if not isinstance(target, KillTarget):
        target = KillTarget.from_raw(target)
    runner = runner or run_tool
    flag = signal_flag(signal)

    if not target.pattern:
        logger.warning("Empty process pattern matches every process (exact=%s)", target.exact)

    if not target.children:
        result = await runner(["pkill", flag, *target.match_args()])
        if result.returncode not in (0, NO_MATCH_EXIT):
            raise tool_failure(result, "pkill")
        logger.debug("pkill %s '%s' exited with %s", flag, target.pattern, result.returncode)
        return

    parents = await _match_parents(target, runner)
    if not parents:
        logger.debug("No process matches '%s'", target.pattern)
        return
    children = await _match_children(parents, runner)
    pids = _unique([*parents, *children])
    await _signal_all(pids, flag, runner)
    logger.info("Sent %s to %s", flag[1:], ", ".join(str(p) for p in pids))


__all__ = ["KillTarget", "NO_MATCH_EXIT", "kill_by_pattern"]
