"""Error taxonomy for recording ingestion and playback synchronization."""

from __future__ import annotations


class ReplaySyncError(Exception):
    """Base class for all replaysync failures."""


class NoSourcesError(ReplaySyncError):
    """Raised when a recording lists no retrievable chunks."""


class SourceFetchError(ReplaySyncError):
    """Raised when a chunk or the chunk listing cannot be retrieved."""


class DecodeError(ReplaySyncError):
    """Raised when a non-empty chunk contains no parseable records."""


class NoFullStateError(ReplaySyncError):
    """Raised when an event sequence has no full-state snapshot to start from."""


class FieldDecompressError(ReplaySyncError):
    """Raised when one compressed event field cannot be inflated or parsed."""


class InvalidCallConfigError(ReplaySyncError):
    """Raised when call-audio metadata cannot describe a sync window."""


class MissingDurationError(InvalidCallConfigError):
    """Raised when neither a call end time nor an explicit duration is given."""


class SeekPreconditionError(ReplaySyncError):
    """Raised when a seek target leaves too few events to rebuild the replayer."""


class PlaybackStateError(ReplaySyncError):
    """Raised when a playback operation is invoked before a recording is loaded."""
