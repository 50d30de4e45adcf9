"""Command-line entry points for dirguard."""
