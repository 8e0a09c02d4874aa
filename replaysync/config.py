"""Typed runtime settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from replaysync.domain import CallSyncConfig


@dataclass(frozen=True)
class PlaybackSettings:
    """Replay primitive and polling configuration."""

    tick_interval_ms: int = 500
    playback_rates: tuple[float, ...] = (1.0, 2.0)
    default_speed: float = 1.0


@dataclass(frozen=True)
class AudioSyncSettings:
    """Thresholds guarding call-audio position writes."""

    hysteresis_s: float = 0.5
    backward_jump_s: float = 2.0
    distinct_position_s: float = 0.1
    boundary_guard_ms: int = 100
    min_ready_state: int = 2


@dataclass(frozen=True)
class IngestSettings:
    """Chunk retrieval configuration."""

    chunks_folder: Path = Path("./recordings")
    session_id: str | None = None
    fetch_workers: int = 1


@dataclass(frozen=True)
class CallSettings:
    """Optional call-audio metadata for the secondary track."""

    audio_url: str | None = None
    session_start_time: str | None = None
    call_start_time: str | None = None
    call_end_time: str | None = None
    call_duration: str | None = None

    def to_call_config(self) -> CallSyncConfig | None:
        """Returns call metadata, or None when no call fields are configured."""
        if not any(
            (
                self.audio_url,
                self.session_start_time,
                self.call_start_time,
                self.call_end_time,
                self.call_duration,
            )
        ):
            return None
        return CallSyncConfig(
            audio_url=self.audio_url,
            session_start_wall=self.session_start_time,
            call_start_wall=self.call_start_time,
            call_end_wall=self.call_end_time,
            call_duration_ms=self.call_duration,
        )


@dataclass(frozen=True)
class AppConfig:
    """Top-level application settings."""

    playback: PlaybackSettings = field(default_factory=PlaybackSettings)
    audio_sync: AudioSyncSettings = field(default_factory=AudioSyncSettings)
    ingest: IngestSettings = field(default_factory=IngestSettings)
    call: CallSettings = field(default_factory=CallSettings)


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_rates(name: str, default: tuple[float, ...]) -> tuple[float, ...]:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        rates = tuple(float(part) for part in raw.split(",") if part.strip())
    except ValueError:
        return default
    if not rates or any(rate <= 0 for rate in rates):
        return default
    return rates


def _default_fetch_workers() -> int:
    return min(4, os.cpu_count() or 1)


def _build_settings() -> AppConfig:
    playback_defaults = PlaybackSettings()
    sync_defaults = AudioSyncSettings()
    rates = _env_rates("REPLAY_PLAYBACK_RATES", playback_defaults.playback_rates)
    default_speed = _env_float("REPLAY_DEFAULT_SPEED", playback_defaults.default_speed)
    if default_speed not in rates:
        default_speed = rates[0]
    return AppConfig(
        playback=PlaybackSettings(
            tick_interval_ms=max(
                1,
                _env_int("REPLAY_TICK_INTERVAL_MS", playback_defaults.tick_interval_ms),
            ),
            playback_rates=rates,
            default_speed=default_speed,
        ),
        audio_sync=AudioSyncSettings(
            hysteresis_s=_env_float(
                "AUDIO_SYNC_HYSTERESIS_S", sync_defaults.hysteresis_s
            ),
            backward_jump_s=_env_float(
                "AUDIO_SYNC_BACKWARD_JUMP_S", sync_defaults.backward_jump_s
            ),
            distinct_position_s=_env_float(
                "AUDIO_SYNC_DISTINCT_POSITION_S", sync_defaults.distinct_position_s
            ),
            boundary_guard_ms=_env_int(
                "AUDIO_SYNC_BOUNDARY_GUARD_MS", sync_defaults.boundary_guard_ms
            ),
        ),
        ingest=IngestSettings(
            chunks_folder=Path(os.getenv("REPLAY_CHUNKS_DIR", "./recordings")),
            session_id=_env_str("REPLAY_SESSION_ID"),
            fetch_workers=max(
                1, _env_int("REPLAY_FETCH_WORKERS", _default_fetch_workers())
            ),
        ),
        call=CallSettings(
            audio_url=_env_str("CALL_AUDIO_URL"),
            session_start_time=_env_str("SESSION_START_TIME"),
            call_start_time=_env_str("CALL_START_TIME"),
            call_end_time=_env_str("CALL_END_TIME"),
            call_duration=_env_str("CALL_DURATION"),
        ),
    )


_SETTINGS: AppConfig | None = None


def reload_settings() -> AppConfig:
    """Rebuilds settings from the current environment and caches them."""
    global _SETTINGS
    _SETTINGS = _build_settings()
    return _SETTINGS


def get_settings() -> AppConfig:
    """Returns cached settings, loading them on first access."""
    if _SETTINGS is None:
        return reload_settings()
    return _SETTINGS
