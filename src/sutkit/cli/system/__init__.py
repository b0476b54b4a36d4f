"""Inspect the host: OS family and available tools."""
