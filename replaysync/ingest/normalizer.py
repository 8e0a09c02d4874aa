"""Extraction of replay events from service wrapper records."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from replaysync.domain import EventType, RawRecord, RecordingEvent
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

# Added by the recording service's transport, not part of the event contract.
TRANSPORT_FIELDS: frozenset[str] = frozenset({"cv", "delay"})
_CORE_FIELDS: frozenset[str] = frozenset({"type", "timestamp", "data"})


def _unwrap(record: RawRecord) -> RawRecord:
    """Returns the event object of a ``(session_id, event)`` pairing."""
    if isinstance(record, (list, tuple)) and len(record) >= 2:
        return record[1]
    return record


def _coerce_timestamp(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return int(parsed) if math.isfinite(parsed) else None
    return None


def normalize_record(record: RawRecord) -> RecordingEvent | None:
    """Normalizes one raw record, returning None for unrecognizable records."""
    candidate = _unwrap(record)
    if not isinstance(candidate, Mapping) or "type" not in candidate:
        return None
    kind = EventType.parse(candidate["type"])
    if kind is None:
        logger.debug("Dropping record with unknown type %r", candidate["type"])
        return None

    extras: dict[str, Any] = {
        key: value
        for key, value in candidate.items()
        if key not in _CORE_FIELDS and key not in TRANSPORT_FIELDS
    }
    return RecordingEvent(
        kind=kind,
        timestamp=_coerce_timestamp(candidate.get("timestamp")),
        payload=candidate.get("data"),
        extras=extras,
    )


def normalize(records: Iterable[RawRecord]) -> list[RecordingEvent]:
    """
    Normalizes decoded records into replay events, preserving input order.

    Records may be ``(session_id, event)`` pairings or bare event objects.
    Records without a recognizable ``type`` are partial records from chunk
    boundaries and are dropped.
    """
    events: list[RecordingEvent] = []
    dropped = 0
    for record in records:
        event = normalize_record(record)
        if event is None:
            dropped += 1
            continue
        events.append(event)
    if dropped:
        logger.debug("Dropped %d unrecognized records", dropped)
    return events
