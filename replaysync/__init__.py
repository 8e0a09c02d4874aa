from .domain import (
    CallSyncConfig,
    CallWindow,
    ChunkLocator,
    EventType,
    PlaybackPhase,
    PlaybackState,
    RecordingEvent,
)
from .errors import (
    DecodeError,
    FieldDecompressError,
    InvalidCallConfigError,
    MissingDurationError,
    NoFullStateError,
    NoSourcesError,
    PlaybackStateError,
    ReplaySyncError,
    SeekPreconditionError,
    SourceFetchError,
)
from .ingest import DirectoryChunkFetcher, RecordingAssembler
from .playback import AudioSyncController, PlaybackController, ReplaySession
