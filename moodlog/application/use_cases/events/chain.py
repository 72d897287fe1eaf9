"""Content-derived chain markers for the event log.

Each entry's marker is ``sha256(previous_marker + canonical_json(entry))``.
Recomputing the markers from stored rows must reproduce the stored values;
any out-of-band edit of a payload, sequence or timestamp breaks the chain
from that entry onwards.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from moodlog.domain.entities import ChainVerification, Event, EventKind
from moodlog.utils import ensure_app_naive_datetime

GENESIS_MARKER = "0" * 64


def canonical_entry(
    *,
    uuid: str,
    user_id: int,
    sequence: int,
    kind: EventKind,
    payload: dict[str, Any],
    created_at: datetime,
) -> bytes:
    """Serialize the hashed fields of an entry deterministically."""

    stored_at = ensure_app_naive_datetime(created_at)
    document = {
        "uuid": uuid,
        "user_id": user_id,
        "sequence": sequence,
        "kind": EventKind(kind).value,
        "payload": payload,
        "created_at": stored_at.isoformat() if stored_at else None,
    }
    return json.dumps(
        document, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def compute_marker(previous_marker: str, entry: bytes) -> str:
    digest = hashlib.sha256()
    digest.update(previous_marker.encode("ascii"))
    digest.update(entry)
    return digest.hexdigest()


def marker_for(event: Event, previous_marker: str) -> str:
    """Recompute the marker ``event`` should carry after ``previous_marker``."""

    entry = canonical_entry(
        uuid=event.uuid,
        user_id=event.user_id,
        sequence=event.sequence,
        kind=event.kind,
        payload=event.payload,
        created_at=event.created_at,
    )
    return compute_marker(previous_marker, entry)


def verify_events(user_id: int, events: Iterable[Event]) -> ChainVerification:
    """Walk ``events`` in sequence order and report the first inconsistency."""

    result = ChainVerification(user_id=user_id, valid=True, checked=0)
    previous_marker = GENESIS_MARKER
    expected_sequence = 1
    for event in events:
        result.checked += 1
        if event.sequence != expected_sequence:
            result.problems.append(
                f"expected sequence {expected_sequence}, found {event.sequence}"
            )
        elif marker_for(event, previous_marker) != event.marker:
            result.problems.append(f"marker mismatch at sequence {event.sequence}")
        if result.problems:
            result.valid = False
            result.first_broken_sequence = event.sequence
            break
        previous_marker = event.marker
        expected_sequence += 1
    return result


__all__ = [
    "GENESIS_MARKER",
    "canonical_entry",
    "compute_marker",
    "marker_for",
    "verify_events",
]
