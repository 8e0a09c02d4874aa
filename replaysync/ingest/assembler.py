"""
Recording assembly: fetch, decode, normalize and decompress every chunk of a
session into one replayable event sequence.

Chunks are concatenated in locator order. Events are not re-sorted by
timestamp: overlapping chunk ranges can leave local disorder, which playback
tolerates through timestamp-threshold filtering on seek.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from replaysync.domain import ChunkLocator, EventType, RecordingEvent
from replaysync.errors import (
    DecodeError,
    NoFullStateError,
    NoSourcesError,
    ReplaySyncError,
    SourceFetchError,
)
from replaysync.ingest.decoder import decode
from replaysync.ingest.decompressor import decompress_all
from replaysync.ingest.normalizer import normalize
from replaysync.ingest.sources import ChunkFetcher
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)


def require_full_state(events: Sequence[RecordingEvent]) -> None:
    """Raises NoFullStateError unless the sequence holds a full-state event."""
    if any(event.is_full_state for event in events):
        return
    seen = sorted({int(event.kind) for event in events})
    raise NoFullStateError(
        f"No full snapshot found in recording events. Event types found: {seen}"
    )


class RecordingAssembler:
    """Turns the chunks of one recording into an ordered event sequence."""

    def __init__(self, fetcher: ChunkFetcher, max_workers: int = 1) -> None:
        self.fetcher = fetcher
        self.max_workers = max(1, max_workers)

    def assemble_session(self, session_id: str) -> list[RecordingEvent]:
        """Lists the chunks of a session and assembles them."""
        try:
            locators = list(self.fetcher.list_sources(session_id))
        except ReplaySyncError:
            raise
        except Exception as err:
            raise SourceFetchError(
                f"Failed to fetch sources for session {session_id}: {err}"
            ) from err
        return self.assemble(locators)

    def assemble(self, locators: Sequence[ChunkLocator]) -> list[RecordingEvent]:
        """
        Assembles the events of the given chunks in locator order.

        Arguments:
            locators (Sequence[ChunkLocator]): Chunks in replay order.

        Returns:
            list[RecordingEvent]: Decompressed events of all chunks.

        Raises:
            NoSourcesError: If no locators are given.
            SourceFetchError: If any chunk cannot be retrieved.
            NoFullStateError: If no chunk contributes a full-state event.
        """
        if not locators:
            raise NoSourcesError("No sources found for this session recording")

        logger.info("Assembling recording from %d chunks", len(locators))
        payloads = self._fetch_all(locators)

        events: list[RecordingEvent] = []
        for locator, payload in zip(locators, payloads):
            events.extend(self._process_chunk(locator, payload))

        require_full_state(events)
        logger.info(
            "Assembled %d events (%d full snapshots)",
            len(events),
            sum(1 for event in events if event.kind is EventType.FULL_STATE),
        )
        return events

    def _fetch_one(self, locator: ChunkLocator) -> str | bytes:
        try:
            return self.fetcher.fetch_chunk(locator)
        except ReplaySyncError:
            raise
        except Exception as err:
            raise SourceFetchError(
                f"Failed to fetch snapshot from source {locator.source}: {err}"
            ) from err

    def _fetch_all(self, locators: Sequence[ChunkLocator]) -> list[str | bytes]:
        if self.max_workers == 1 or len(locators) == 1:
            return [self._fetch_one(locator) for locator in locators]
        # map() yields results in submission order, not completion order.
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self._fetch_one, locators))

    def _process_chunk(
        self, locator: ChunkLocator, payload: str | bytes
    ) -> list[RecordingEvent]:
        try:
            records = decode(payload)
        except DecodeError as err:
            logger.warning("Skipping chunk %s: %s", locator, err)
            return []
        events = decompress_all(normalize(records))
        logger.debug(
            "Chunk %s: %d records, %d events", locator, len(records), len(events)
        )
        return events
