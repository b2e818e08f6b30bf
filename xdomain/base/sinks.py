# ==============================================================================
# Tracking Sink Abstract Class
# ==============================================================================
"""
Base class for tracking sinks.

Sinks observe the tracker: they receive a state snapshot after every
state-affecting operation and every beacon as it is created. The debug
visualization panel is one such sink; the tracker never depends on a specific
implementation.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from xdomain.core.models import BeaconPayload, TrackerSnapshot


class TrackingSink(ABC):
    """Base class for tracking sinks."""

    @abstractmethod
    def update(self, snapshot: "TrackerSnapshot") -> None:
        """
        Receive the current tracker state.

        Args:
            snapshot: Visitor/session ids, first-touch site, site context
                      and the most recent log entries
        """
        ...

    @abstractmethod
    def add_entry(self, payload: "BeaconPayload") -> None:
        """
        Receive a newly created beacon.

        Args:
            payload: Immutable beacon payload
        """
        ...
