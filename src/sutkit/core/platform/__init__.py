"""Host OS classification used to pick an inspection strategy."""
from __future__ import annotations

from .os_family import (
    HostOSProbe,
    OSFamily,
    OSProbe,
    detect_os_family,
    get_os_family,
)

__all__ = [
    "HostOSProbe",
    "OSFamily",
    "OSProbe",
    "detect_os_family",
    "get_os_family",
]
