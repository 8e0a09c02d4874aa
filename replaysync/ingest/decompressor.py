"""Inflation of gzip-compressed payload fields inside replay events.

The recording service ships compressed fields as "binary strings": every
character code of the string is one byte of a gzip stream. Incremental events
may carry any of their four mutation sub-lists in that form, full-state
events may carry their whole DOM description that way.
"""

from __future__ import annotations

import json
import logging
import zlib
from collections.abc import Iterable, Mapping
from typing import Any

from replaysync.domain import INCREMENTAL_FIELDS, EventType, RecordingEvent
from replaysync.errors import FieldDecompressError
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

GZIP_MAGIC: tuple[int, int] = (0x1F, 0x8B)
# zlib window bits accepting both gzip and zlib headers.
_AUTO_HEADER_WBITS = 32 + zlib.MAX_WBITS


def is_compressed(value: object) -> bool:
    """Returns whether a field value is a gzip binary string."""
    return (
        isinstance(value, str)
        and len(value) > 1
        and ord(value[0]) == GZIP_MAGIC[0]
        and ord(value[1]) == GZIP_MAGIC[1]
    )


def inflate_binary_string(value: str) -> str:
    """Inflates a gzip binary string into its UTF-8 text."""
    compressed = bytes(ord(char) & 0xFF for char in value)
    try:
        return zlib.decompress(compressed, _AUTO_HEADER_WBITS).decode("utf-8")
    except (zlib.error, UnicodeDecodeError) as err:
        raise FieldDecompressError(f"Failed to inflate field: {err}") from err


def _inflate_json(value: str) -> Any:
    text = inflate_binary_string(value)
    try:
        return json.loads(text)
    except json.JSONDecodeError as err:
        raise FieldDecompressError(f"Inflated field is not JSON: {err}") from err


def _restore_list_field(name: str, value: Any) -> list[Any]:
    """Restores one incremental sub-list; anything not ending as a list is []."""
    if isinstance(value, str):
        if is_compressed(value):
            try:
                value = _inflate_json(value)
            except FieldDecompressError as err:
                logger.error("Failed to decompress field %s: %s", name, err)
                return []
        else:
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                pass
    return value if isinstance(value, list) else []


def _decompress_incremental(event: RecordingEvent) -> RecordingEvent:
    if not isinstance(event.payload, Mapping):
        return event
    payload = dict(event.payload)
    for name in INCREMENTAL_FIELDS:
        payload[name] = _restore_list_field(name, payload.get(name))
    return event.with_payload(payload)


def _decompress_full_state(event: RecordingEvent) -> RecordingEvent:
    if not is_compressed(event.payload):
        return event
    try:
        parsed = _inflate_json(event.payload)
    except FieldDecompressError as err:
        logger.error("Failed to decompress full snapshot: %s", err)
        return event
    if not isinstance(parsed, Mapping):
        logger.warning(
            "Full snapshot payload inflated to %s, keeping raw value",
            type(parsed).__name__,
        )
        return event
    return event.with_payload(dict(parsed))


def decompress(event: RecordingEvent) -> RecordingEvent:
    """Returns the event with its compressed fields inflated.

    Incremental sub-lists always come back as lists; a full-state payload is
    replaced only by an object.
    """
    if event.kind is EventType.INCREMENTAL:
        return _decompress_incremental(event)
    if event.kind is EventType.FULL_STATE:
        return _decompress_full_state(event)
    return event


def decompress_all(events: Iterable[RecordingEvent]) -> list[RecordingEvent]:
    return [decompress(event) for event in events]
