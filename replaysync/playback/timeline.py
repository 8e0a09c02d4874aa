"""
Timeline model mapping virtual replay time onto the call-audio track.

Virtual time is milliseconds since the first recorded event. The call track is
anchored to it through an offset (call start minus session start, both wall
clock) and a duration. All functions here are pure.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime, timedelta, timezone

from replaysync.domain import CallSyncConfig, CallWindow
from replaysync.errors import InvalidCallConfigError, MissingDurationError

_WALL_TIMESTAMP = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[ T]"
    r"(?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d+))?"
    r"(?P<zone>Z|[+-]\d{2}(?::?\d{2})?)?$"
)
_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


def parse_wall_timestamp(text: str) -> datetime:
    """
    Parses a wall-clock timestamp into an aware UTC datetime.

    Accepts ``"2025-09-02 20:22:00.227"`` (implicitly UTC), the same with a
    trailing ``Z``, and the timestamptz form ``"2025-09-02 20:21:51.526+00"``
    whose offset may be written ``+HH``, ``+HHMM`` or ``+HH:MM``.

    Raises:
        ValueError: If the text matches neither form.
    """
    match = _WALL_TIMESTAMP.match(text.strip())
    if match is None:
        raise ValueError(f"Unrecognized wall-clock timestamp: {text!r}")

    fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
    naive = datetime.strptime(
        f"{match.group('date')} {match.group('time')}.{fraction}",
        "%Y-%m-%d %H:%M:%S.%f",
    )
    zone = match.group("zone")
    if zone is None or zone == "Z":
        return naive.replace(tzinfo=UTC)

    sign = -1 if zone[0] == "-" else 1
    digits = zone[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4]) if len(digits) > 2 else 0
    offset = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return naive.replace(tzinfo=offset).astimezone(UTC)


def _delta_ms(start: datetime, end: datetime) -> int:
    return round((end - start) / timedelta(milliseconds=1))


def call_offset_ms(session_start_wall: str, call_start_wall: str) -> int:
    """Returns the delay from session start to call start in milliseconds."""
    return _delta_ms(
        parse_wall_timestamp(session_start_wall),
        parse_wall_timestamp(call_start_wall),
    )


def call_duration_ms(
    call_start_wall: str,
    call_end_wall: str | None = None,
    explicit_duration_ms: str | int | None = None,
) -> int:
    """Returns the call length, preferring the end-time difference."""
    if call_end_wall:
        return _delta_ms(
            parse_wall_timestamp(call_start_wall),
            parse_wall_timestamp(call_end_wall),
        )
    if isinstance(explicit_duration_ms, int) and not isinstance(
        explicit_duration_ms, bool
    ):
        return explicit_duration_ms
    if isinstance(explicit_duration_ms, str) and explicit_duration_ms.strip():
        match = _LEADING_INTEGER.match(explicit_duration_ms)
        if match is None:
            raise InvalidCallConfigError(
                f"Call duration is not a number: {explicit_duration_ms!r}"
            )
        return int(match.group(1))
    raise MissingDurationError("Either callEndTime or callDuration must be provided")


def is_within_call(virtual_time_ms: float, offset_ms: float, duration_ms: float) -> bool:
    """Returns whether virtual time falls inside the call window, ends included."""
    return offset_ms <= virtual_time_ms <= offset_ms + duration_ms


def audio_position_seconds(
    virtual_time_ms: float, offset_ms: float, rate: float = 1.0
) -> float:
    """Returns the call-audio position in seconds for a virtual time."""
    if rate <= 0:
        raise ValueError(f"Playback rate must be positive, got {rate}")
    return max(0.0, virtual_time_ms - offset_ms) / rate / 1000


def resolve_call_window(config: CallSyncConfig) -> CallWindow:
    """
    Resolves call metadata into a window on the virtual timeline.

    Raises:
        InvalidCallConfigError: If the metadata is incomplete or unparseable.
    """
    if not config.audio_url:
        raise InvalidCallConfigError("Call audio URL is missing")
    if not config.session_start_wall or not config.call_start_wall:
        raise InvalidCallConfigError("Session and call start times are required")
    try:
        offset = call_offset_ms(config.session_start_wall, config.call_start_wall)
        duration = call_duration_ms(
            config.call_start_wall, config.call_end_wall, config.call_duration_ms
        )
    except ValueError as err:
        raise InvalidCallConfigError(str(err)) from err
    if duration < 0:
        raise InvalidCallConfigError(f"Call duration is negative: {duration} ms")
    return CallWindow(audio_url=config.audio_url, offset_ms=offset, duration_ms=duration)


def format_time(ms: float | None) -> str:
    """Formats milliseconds as ``m:ss``."""
    if not isinstance(ms, (int, float)) or not math.isfinite(ms) or ms <= 0:
        return "0:00"
    total_seconds = int(ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def call_window_markers(
    offset_ms: float, duration_ms: float, session_duration_ms: float
) -> tuple[float, float]:
    """Returns the call start and end as percentages of the session length."""
    if session_duration_ms <= 0:
        return 0.0, 0.0
    start = offset_ms / session_duration_ms * 100
    end = (offset_ms + duration_ms) / session_duration_ms * 100
    return start, end
