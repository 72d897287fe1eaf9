"""Use cases for the per-user event log."""

from .chain import GENESIS_MARKER, canonical_entry, compute_marker, verify_events
from .event_log import EventLog
from .submit_event import submit_event
from .validators import INTENSITY_RANGE, MOOD_RANGE, validate_payload

__all__ = [
    "EventLog",
    "GENESIS_MARKER",
    "INTENSITY_RANGE",
    "MOOD_RANGE",
    "canonical_entry",
    "compute_marker",
    "submit_event",
    "validate_payload",
    "verify_events",
]
