"""Decoding of raw chunk payloads into JSON records."""

from __future__ import annotations

import json
import logging

from replaysync.domain import RawRecord
from replaysync.errors import DecodeError
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_WRAPPER_KEYS: tuple[str, ...] = ("events", "data")


def decode(raw: str | bytes) -> list[RawRecord]:
    """
    Decodes one chunk payload into a list of raw records.

    The whole payload is parsed as JSON first. A top-level array yields its
    elements; a top-level object yields itself, or the list stored under an
    ``events``/``data`` key. When the payload is not a single JSON document it
    is read as newline-delimited JSON and unparseable lines are skipped.

    Arguments:
        raw (str | bytes): Chunk payload as returned by the fetcher.

    Returns:
        list[RawRecord]: Records in payload order.

    Raises:
        DecodeError: If a non-empty payload yields no parseable records.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    if not text.strip():
        return []

    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        return _decode_lines(text)
    return _unwrap_document(document)


def _unwrap_document(document: RawRecord) -> list[RawRecord]:
    if isinstance(document, list):
        return list(document)
    if isinstance(document, dict) and "type" not in document:
        for key in _WRAPPER_KEYS:
            wrapped = document.get(key)
            if isinstance(wrapped, list):
                return list(wrapped)
    return [document]


def _decode_lines(text: str) -> list[RawRecord]:
    records: list[RawRecord] = []
    skipped = 0
    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            records.append(json.loads(stripped))
        except json.JSONDecodeError:
            skipped += 1
            logger.warning(
                "Failed to parse line %d: %s", line_number, stripped[:100]
            )
    if not records:
        raise DecodeError("Failed to parse chunk payload as JSON or NDJSON")
    if skipped:
        logger.debug("Decoded %d NDJSON records, skipped %d", len(records), skipped)
    return records
