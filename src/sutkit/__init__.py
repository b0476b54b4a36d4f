"""
sutkit - system-under-test helpers for integration suites

Starts external servers and waits for them to be ready, then cleans up
stray processes by TCP port or by process-name pattern.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
