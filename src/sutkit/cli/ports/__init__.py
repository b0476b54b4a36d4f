"""Find and kill processes listening on TCP ports."""
