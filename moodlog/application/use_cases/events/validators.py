"""Validation helpers for event payloads."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from moodlog.domain.entities import EventKind
from moodlog.domain.errors import InvalidPayload

MOOD_RANGE = (-5, 5)
INTENSITY_RANGE = (0, 10)
MAX_NOTES_LENGTH = 4_000

_KNOWN_FIELDS = {"mood", "intensity", "notes", "extras"}


def _ensure_int_in_range(
    payload: Mapping[str, Any], name: str, bounds: tuple[int, int], *, required: bool
) -> int | None:
    value = payload.get(name)
    if value is None:
        if required:
            raise InvalidPayload(f"'{name}' is required", field=name)
        return None
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPayload(f"'{name}' must be an integer", field=name)
    low, high = bounds
    if not low <= value <= high:
        raise InvalidPayload(
            f"'{name}' must be between {low} and {high}, got {value}", field=name
        )
    return value


def _ensure_notes(payload: Mapping[str, Any]) -> str | None:
    notes = payload.get("notes")
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise InvalidPayload("'notes' must be a string", field="notes")
    notes = notes.strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise InvalidPayload(
            f"'notes' must be at most {MAX_NOTES_LENGTH} characters", field="notes"
        )
    return notes or None


def _ensure_extras(payload: Mapping[str, Any]) -> dict[str, Any]:
    extras = payload.get("extras") or {}
    if not isinstance(extras, Mapping):
        raise InvalidPayload("'extras' must be an object", field="extras")
    if not all(isinstance(key, str) for key in extras):
        raise InvalidPayload("'extras' keys must be strings", field="extras")
    try:
        encoded = json.dumps(
            extras,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise InvalidPayload(
            f"'extras' must contain plain JSON values: {exc}", field="extras"
        ) from exc
    # Stored exactly as the chain marker hashes it.
    return json.loads(encoded)


def validate_payload(kind: EventKind | str, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return the normalized payload for ``kind`` or raise :class:`InvalidPayload`.

    Check-ins require ``mood`` and ``intensity``; panic events accept them as
    optional snapshots. Unknown top level keys are rejected, kind-specific
    data goes into ``extras``.
    """

    try:
        kind = EventKind(kind)
    except ValueError as exc:
        raise InvalidPayload(f"Unknown event kind '{kind}'", field="kind") from exc

    if not isinstance(payload, Mapping):
        raise InvalidPayload("Payload must be an object")

    unknown = sorted(set(payload) - _KNOWN_FIELDS)
    if unknown:
        raise InvalidPayload(
            f"Unknown payload field(s): {', '.join(unknown)}", field=unknown[0]
        )

    required = kind is EventKind.CHECKIN

    return {
        "mood": _ensure_int_in_range(payload, "mood", MOOD_RANGE, required=required),
        "intensity": _ensure_int_in_range(
            payload, "intensity", INTENSITY_RANGE, required=required
        ),
        "notes": _ensure_notes(payload),
        "extras": _ensure_extras(payload),
    }


__all__ = ["INTENSITY_RANGE", "MOOD_RANGE", "validate_payload"]
