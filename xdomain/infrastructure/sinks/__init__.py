# ==============================================================================
# Sink Infrastructure
# ==============================================================================
"""
Tracking sink implementations.

Available implementations:
- RecordingSink: keeps snapshots and beacons in memory
- ConsoleSink: renders beacons (and optionally state) with rich
"""

from xdomain.infrastructure.sinks.console import ConsoleSink, log_table, snapshot_table
from xdomain.infrastructure.sinks.memory import RecordingSink

__all__ = [
    "ConsoleSink",
    "RecordingSink",
    "log_table",
    "snapshot_table",
]
