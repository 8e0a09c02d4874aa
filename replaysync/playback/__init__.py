from .audio_sync import AudioSyncController
from .contracts import AudioElement, Replayer, ReplayerFactory, ReplayerOptions, Scheduler
from .controller import PlaybackController, build_seek_prefix
from .session import ReplaySession, build_call_window
from .timeline import (
    audio_position_seconds,
    call_duration_ms,
    call_offset_ms,
    call_window_markers,
    format_time,
    is_within_call,
    parse_wall_timestamp,
    resolve_call_window,
)

__all__ = [
    "AudioElement",
    "AudioSyncController",
    "PlaybackController",
    "ReplaySession",
    "Replayer",
    "ReplayerFactory",
    "ReplayerOptions",
    "Scheduler",
    "audio_position_seconds",
    "build_call_window",
    "build_seek_prefix",
    "call_duration_ms",
    "call_offset_ms",
    "call_window_markers",
    "format_time",
    "is_within_call",
    "parse_wall_timestamp",
    "resolve_call_window",
]
