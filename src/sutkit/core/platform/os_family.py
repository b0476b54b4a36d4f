"""OS family detection.

Linux distributions are told apart by their release files:
- ``/etc/redhat-release`` present -> redhat
- ``/etc/lsb-release`` whose first line mentions Ubuntu -> ubuntu

macOS is ``osx``. Anything else is ``unsupported`` rather than an error.
"""
from __future__ import annotations

import platform
import re
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Protocol

REDHAT_RELEASE_FILE = "/etc/redhat-release"
LSB_RELEASE_FILE = "/etc/lsb-release"

_UBUNTU_RE = re.compile(r"ubuntu", re.IGNORECASE)


class OSFamily(str, Enum):
    REDHAT = "redhat"
    UBUNTU = "ubuntu"
    OSX = "osx"
    UNSUPPORTED = "unsupported"


class OSProbe(Protocol):
    def system(self) -> str:
        """Return the kernel name, e.g. ``Linux`` or ``Darwin``."""
        ...

    def read_text(self, path: str) -> str | None:
        """Return the file contents, or None when it cannot be read."""
        ...


class HostOSProbe:
    """Probe backed by the running host."""

    def system(self) -> str:
        return platform.system()

    def read_text(self, path: str) -> str | None:
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None


def detect_os_family(probe: OSProbe | None = None) -> OSFamily:
    probe = probe or HostOSProbe()
    system = (probe.system() or "").lower()

    if system == "darwin":
        return OSFamily.OSX
    if system != "linux":
        return OSFamily.UNSUPPORTED

    if probe.read_text(REDHAT_RELEASE_FILE) is not None:
        return OSFamily.REDHAT

    release = probe.read_text(LSB_RELEASE_FILE)
    if release is not None:
        lines = release.splitlines()
        if lines and _UBUNTU_RE.search(lines[0]):
            return OSFamily.UBUNTU

    return OSFamily.UNSUPPORTED


@lru_cache(maxsize=1)
def get_os_family() -> OSFamily:
    """Detect (once) the family of the running host."""
    return detect_os_family()


__all__ = [
    "OSFamily",
    "OSProbe",
    "HostOSProbe",
    "detect_os_family",
    "get_os_family",
    "REDHAT_RELEASE_FILE",
    "LSB_RELEASE_FILE",
]
