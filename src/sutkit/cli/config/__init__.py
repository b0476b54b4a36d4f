"""Inspect sutkit configuration."""
