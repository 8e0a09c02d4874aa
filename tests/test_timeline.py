"""Behavior tests for the call timeline model."""

from datetime import UTC, datetime

import pytest

from replaysync.domain import CallSyncConfig
from replaysync.errors import InvalidCallConfigError, MissingDurationError
from replaysync.playback.timeline import (
    audio_position_seconds,
    call_duration_ms,
    call_offset_ms,
    call_window_markers,
    format_time,
    is_within_call,
    parse_wall_timestamp,
    resolve_call_window,
)


def test_call_offset_mixes_timestamptz_and_utc_forms() -> None:
    assert call_offset_ms("2025-09-02 20:21:51.526+00", "2025-09-02 20:22:00.227") == 8701


@pytest.mark.parametrize(
    "text",
    [
        "2025-09-02 20:22:00.227",
        "2025-09-02T20:22:00.227Z",
        "2025-09-02 20:22:00.227+00",
        "2025-09-02 22:22:00.227+02:00",
        "2025-09-02 17:22:00.227-0300",
    ],
)
def test_parse_wall_timestamp_normalizes_to_one_instant(text) -> None:
    assert parse_wall_timestamp(text) == datetime(2025, 9, 2, 20, 22, 0, 227000, tzinfo=UTC)


def test_parse_wall_timestamp_rejects_other_text() -> None:
    with pytest.raises(ValueError):
        parse_wall_timestamp("yesterday at noon")


def test_call_duration_prefers_end_time() -> None:
    assert call_duration_ms("2025-09-02 20:22:00.000", "2025-09-02 20:23:30.500", "5") == 90500


def test_call_duration_parses_explicit_value() -> None:
    assert call_duration_ms("2025-09-02 20:22:00", None, "120000") == 120000
    assert call_duration_ms("2025-09-02 20:22:00", None, "4500ms") == 4500
    assert call_duration_ms("2025-09-02 20:22:00", None, 3000) == 3000


def test_call_duration_without_end_or_duration_raises() -> None:
    with pytest.raises(MissingDurationError):
        call_duration_ms("2025-09-02 20:22:00")


def test_is_within_call_has_inclusive_bounds() -> None:
    offset, duration = 8701, 60000

    assert is_within_call(offset, offset, duration)
    assert is_within_call(offset + duration, offset, duration)
    assert not is_within_call(offset - 1, offset, duration)
    assert not is_within_call(offset + duration + 1, offset, duration)


def test_audio_position_clamps_and_scales_by_rate() -> None:
    assert audio_position_seconds(500, 1000) == 0
    assert audio_position_seconds(11000, 1000) == pytest.approx(10.0)
    assert audio_position_seconds(11000, 1000, rate=2) == pytest.approx(5.0)


def test_resolve_call_window_from_config() -> None:
    window = resolve_call_window(
        CallSyncConfig(
            audio_url="https://calls.example/rec.mp3",
            session_start_wall="2025-09-02 20:21:51.526+00",
            call_start_wall="2025-09-02 20:22:00.227",
            call_duration_ms="60000",
        )
    )

    assert (window.offset_ms, window.duration_ms, window.end_ms) == (8701, 60000, 68701)


@pytest.mark.parametrize(
    "config",
    [
        CallSyncConfig(audio_url=None, session_start_wall="2025-09-02 20:00:00", call_start_wall="2025-09-02 20:00:01", call_duration_ms="1"),
        CallSyncConfig(audio_url="a.mp3", session_start_wall=None, call_start_wall="2025-09-02 20:00:01", call_duration_ms="1"),
        CallSyncConfig(audio_url="a.mp3", session_start_wall="2025-09-02 20:00:00", call_start_wall="2025-09-02 20:00:01"),
        CallSyncConfig(audio_url="a.mp3", session_start_wall="not a time", call_start_wall="2025-09-02 20:00:01", call_duration_ms="1"),
        CallSyncConfig(audio_url="a.mp3", session_start_wall="2025-09-02 20:00:00", call_start_wall="2025-09-02 20:00:01", call_duration_ms="soon"),
    ],
)
def test_resolve_call_window_rejects_incomplete_config(config) -> None:
    with pytest.raises(InvalidCallConfigError):
        resolve_call_window(config)


@pytest.mark.parametrize(
    ("ms", "expected"),
    [(0, "0:00"), (-5, "0:00"), (float("nan"), "0:00"), (None, "0:00"), (59999, "0:59"), (61000, "1:01"), (600000, "10:00")],
)
def test_format_time(ms, expected) -> None:
    assert format_time(ms) == expected


def test_call_window_markers_as_percentages() -> None:
    assert call_window_markers(2500, 5000, 10000) == (25.0, 75.0)
    assert call_window_markers(2500, 5000, 0) == (0.0, 0.0)
