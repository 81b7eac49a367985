"""
EventRecord model for confirmed motion events.
"""

from __future__ import annotations

from dataclasses import dataclass

EVENT_KIND_HIT = "hit"
EVENT_KIND_REP = "rep"


@dataclass(frozen=True)
class EventRecord:
    """
    A confirmed event emitted by an event detector.

    Records are immutable once emitted. Downstream consumers (overlay, web
    state, callbacks) receive the record; statistics keep only the timestamp.

    Attributes:
        sequence_number: 1-based counter value after this event.
        timestamp: Monotonic time in milliseconds when the event was confirmed.
        kind: "hit" or "rep".
    """
    sequence_number: int
    timestamp: float
    kind: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "sequence_number": self.sequence_number,
            "timestamp": self.timestamp,
            "kind": self.kind,
        }
