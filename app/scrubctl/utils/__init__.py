"""Utility modules for scrubctl."""
