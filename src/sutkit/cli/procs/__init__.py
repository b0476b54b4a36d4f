"""Kill processes matching a name/argument pattern."""
