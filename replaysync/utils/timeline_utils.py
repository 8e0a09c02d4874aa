"""
Timeline Utility Functions for the replaysync tool

This module builds, prints, and saves overviews of assembled recordings: the
landmarks of a recording on its virtual timeline (full snapshots, viewport
changes, custom events, the call window) and the event list itself.

Functions:
    - save_events_to_json: Saves assembled events as a JSON array.
    - count_event_types: Counts events per wire type.
    - build_timeline: Builds the landmark timeline of a recording.
    - print_timeline: Prints the timeline as a colored table.
    - color_txt: Colorizes a string.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from colored import attr, bg, fg
from halo import Halo

from replaysync.domain import (
    CallWindow,
    EventType,
    RecordingEvent,
    TimelineEntry,
    recording_duration_ms,
)
from replaysync.playback.timeline import format_time
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)


def save_events_to_json(events: Sequence[RecordingEvent], file_name: str) -> str:
    """
    Saves assembled events to a JSON file in replay wire shape.

    Arguments:
        events (Sequence[RecordingEvent]): Assembled recording events.
        file_name (str): Destination path.

    Returns:
        str: The path of the written file.
    """
    path = Path(file_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    with Halo(text=f"Saving events to {path}", spinner="dots", text_color="green"):
        with path.open("w", encoding="utf-8") as handle:
            json.dump([event.to_record() for event in events], handle)
    logger.info("Saved %d events to %s", len(events), path)
    return str(path)


def count_event_types(events: Sequence[RecordingEvent]) -> dict[str, int]:
    """Counts events per type name, in wire-tag order."""
    counts = Counter(event.kind for event in events)
    return {kind.name: counts[kind] for kind in sorted(counts)}


def _landmark(event: RecordingEvent) -> tuple[str, str] | None:
    payload = event.payload if isinstance(event.payload, dict) else {}
    if event.kind is EventType.FULL_STATE:
        return "snapshot", "Full snapshot"
    if event.kind is EventType.META:
        width, height = payload.get("width"), payload.get("height")
        href = payload.get("href") or ""
        if width and height:
            return "viewport", f"{width}x{height} {href}".strip()
        return "viewport", href
    if event.kind is EventType.CUSTOM:
        return "custom", str(payload.get("tag", ""))
    return None


def build_timeline(
    events: Sequence[RecordingEvent],
    window: CallWindow | None = None,
) -> list[TimelineEntry]:
    """
    Builds the landmark timeline of a recording.

    Arguments:
        events (Sequence[RecordingEvent]): Assembled recording events.
        window (CallWindow | None): Resolved call window, if any.

    Returns:
        list[TimelineEntry]: Landmarks ordered by virtual time.
    """
    first = next((e.timestamp for e in events if e.timestamp is not None), None)
    if first is None:
        return []

    timeline: list[TimelineEntry] = []
    for event in events:
        landmark = _landmark(event)
        if landmark is None or event.timestamp is None:
            continue
        label, detail = landmark
        timeline.append(TimelineEntry(float(event.timestamp - first), label, detail))

    if window is not None:
        timeline.append(TimelineEntry(float(window.offset_ms), "call", "Call started"))
        timeline.append(TimelineEntry(float(window.end_ms), "call", "Call ended"))

    timeline.append(
        TimelineEntry(float(recording_duration_ms(events)), "end", "Recording end")
    )

    timeline.sort(key=lambda entry: entry.offset_ms)
    logger.debug("Timeline built with %d entries", len(timeline))
    return timeline


def color_txt(
    string: str, fg_color: str, bg_color: str, padding: int = 0
) -> str:
    """
    Colorizes a string.

    Arguments:
        string (str): String to be colorized.
        fg_color (str): Foreground color.
        bg_color (str): Background color.
        padding (int): Width to left-justify the string to.

    Returns:
        str: Colorized string.
    """
    if padding:
        string = string.ljust(padding)

    return f"{fg(fg_color)}{bg(bg_color)}{string}{attr('reset')}"


def print_timeline(timeline: Sequence[TimelineEntry]) -> None:
    """Prints the timeline as a table of time, landmark kind, and detail."""
    if not timeline:
        print("Empty timeline")
        return
    time_width = max(len(format_time(entry.offset_ms)) for entry in timeline) + 1
    label_width = max(len(entry.label) for entry in timeline) + 1

    print(color_txt("Time", "black", "green", time_width), end="")
    print(color_txt("Kind", "black", "yellow", label_width), end="")
    print(color_txt("Detail", "black", "blue"))

    for entry in timeline:
        print(
            f"{format_time(entry.offset_ms).ljust(time_width)}"
            f"{entry.label.ljust(label_width)}"
            f"{entry.detail}"
        )


def print_event_counts(counts: dict[str, int], duration_ms: float) -> None:
    """Prints per-type event counts and the recording length."""
    print(color_txt(f"Recording length {format_time(duration_ms)}", "black", "green"))
    for name, count in counts.items():
        print(f"  {name.lower():<20}{count}")
