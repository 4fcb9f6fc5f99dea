"""Command-line interface for scrubctl."""
