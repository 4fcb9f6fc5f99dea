"""scrubctl - Safe cache, log and orphaned-data cleanup.

Validates every removal against protected paths and user whitelist
rules, supports dry-run simulation and reports session statistics.
"""

__version__ = "0.1.0"
