"""Domain data structures for recording events, chunk sources, and playback state."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any, NamedTuple, TypeAlias

from replaysync.errors import SourceFetchError

RawRecord: TypeAlias = Any


class EventType(IntEnum):
    """Wire tags of recorded replay events."""

    DOM_CONTENT_LOADED = 0
    LOAD = 1
    FULL_STATE = 2
    INCREMENTAL = 3
    META = 4
    CUSTOM = 5
    PLUGIN = 6

    @classmethod
    def parse(cls, value: object) -> EventType | None:
        """Returns the tag for a numeric or numeric-string value, if recognized."""
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return None
        if isinstance(value, float):
            if not math.isfinite(value) or not value.is_integer():
                return None
            value = int(value)
        if not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


INCREMENTAL_FIELDS: tuple[str, ...] = ("removes", "adds", "texts", "attributes")


@dataclass(frozen=True, slots=True)
class RecordingEvent:
    """One replay event in wire order.

    ``payload`` carries the wire ``data`` field. ``extras`` holds the remaining
    wire fields once transport-only fields have been stripped.
    """

    kind: EventType
    timestamp: int | None
    payload: Any = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_full_state(self) -> bool:
        return self.kind is EventType.FULL_STATE

    def with_payload(self, payload: Any) -> RecordingEvent:
        """Returns a copy carrying a replacement payload."""
        return RecordingEvent(
            kind=self.kind,
            timestamp=self.timestamp,
            payload=payload,
            extras=self.extras,
        )

    def to_record(self) -> dict[str, Any]:
        """Renders the event in the wire shape the replay primitive consumes."""
        record: dict[str, Any] = dict(self.extras)
        record["type"] = int(self.kind)
        if self.timestamp is not None:
            record["timestamp"] = self.timestamp
        if self.payload is not None:
            record["data"] = self.payload
        return record


def recording_duration_ms(events: Sequence[RecordingEvent]) -> int:
    """Returns the span between the first and last timestamped events."""
    stamps = [event.timestamp for event in events if event.timestamp is not None]
    if not stamps:
        return 0
    return max(0, stamps[-1] - stamps[0])


@dataclass(frozen=True, slots=True)
class ChunkLocator:
    """Names one retrievable unit of raw recording data."""

    source: str
    blob_key: str | None = None
    start_blob_key: str | None = None
    end_blob_key: str | None = None

    @property
    def key_range(self) -> tuple[str, str]:
        """Returns the effective (start, end) boundary keys."""
        start = self.start_blob_key or self.blob_key
        end = self.end_blob_key or self.blob_key
        if not start or not end:
            raise SourceFetchError(f"Missing blob keys for source {self.source}")
        return start, end


@dataclass(frozen=True, slots=True)
class CallSyncConfig:
    """Raw call-audio metadata as delivered with a recording."""

    audio_url: str | None
    session_start_wall: str | None
    call_start_wall: str | None
    call_end_wall: str | None = None
    call_duration_ms: str | int | None = None


@dataclass(frozen=True, slots=True)
class CallWindow:
    """A resolved secondary-track window on the virtual timeline."""

    audio_url: str
    offset_ms: int
    duration_ms: int

    @property
    def end_ms(self) -> int:
        return self.offset_ms + self.duration_ms


class TimelineEntry(NamedTuple):
    """A landmark on the virtual timeline of an assembled recording."""

    offset_ms: float
    label: str
    detail: str


class PlaybackPhase(StrEnum):
    """Lifecycle phase of the playback controller."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    PLAYING = "playing"
    SEEKING = "seeking"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class PlaybackState:
    """Snapshot of playback state published to listeners."""

    phase: PlaybackPhase = PlaybackPhase.UNINITIALIZED
    virtual_time_ms: float = 0.0
    is_playing: bool = False
    playback_rate: float = 1.0
    seek_base_ms: float | None = None
    duration_ms: int = 0
