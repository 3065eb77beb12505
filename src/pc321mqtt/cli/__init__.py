"""Command-line entry points for pc321mqtt."""
