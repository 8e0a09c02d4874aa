import gzip
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from replaysync.domain import ChunkLocator, EventType, RecordingEvent  # noqa: E402
from replaysync.playback.contracts import ReplayerOptions  # noqa: E402


class FakeReplayer:
    """In-memory replay primitive recording calls and emitting notifications."""

    def __init__(self, events: list[dict[str, Any]], options: ReplayerOptions) -> None:
        self.events = events
        self.options = options
        self.speed = options.speed
        self.current_time: Any = 0
        self.calls: list[str] = []
        self.destroyed = False
        self._handlers: dict[str, list[Callable[[], None]]] = {}

    def on(self, event_name: str, callback: Callable[[], None]) -> None:
        self._handlers.setdefault(event_name, []).append(callback)

    def emit(self, event_name: str) -> None:
        for callback in self._handlers.get(event_name, []):
            callback()

    def play(self) -> None:
        self.calls.append("play")

    def pause(self) -> None:
        self.calls.append("pause")

    def get_current_time(self) -> Any:
        return self.current_time

    def set_config(self, *, speed: float) -> None:
        self.speed = speed

    def destroy(self) -> None:
        self.destroyed = True


class ReplayerRecorder:
    """Replayer factory keeping every instance it built."""

    def __init__(self) -> None:
        self.instances: list[FakeReplayer] = []

    def __call__(self, events: list[dict[str, Any]], options: ReplayerOptions) -> FakeReplayer:
        replayer = FakeReplayer(events, options)
        self.instances.append(replayer)
        return replayer

    @property
    def latest(self) -> FakeReplayer:
        return self.instances[-1]


class FakeAudio:
    """Media element stand-in with settable position and play state."""

    def __init__(self, duration: float | None = 60.0, ready_state: int = 4) -> None:
        self._current_time = 0.0
        self.playback_rate = 1.0
        self.paused = True
        self.duration = duration
        self.ready_state = ready_state
        self.writes: list[float] = []
        self.play_calls = 0
        self.fail_play = False

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._current_time = value
        self.writes.append(value)

    def play(self) -> None:
        self.play_calls += 1
        if self.fail_play:
            raise RuntimeError("play() rejected")
        self.paused = False

    def pause(self) -> None:
        self.paused = True


class FakeTick:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.scheduled: list[tuple[float, Callable[[], None], FakeTick]] = []

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> FakeTick:
        tick = FakeTick()
        self.scheduled.append((interval_seconds, callback, tick))
        return tick

    def fire(self) -> None:
        for _, callback, tick in self.scheduled:
            if not tick.cancelled:
                callback()


class FakeFetcher:
    """Chunk fetcher serving in-memory payloads keyed by blob key."""

    def __init__(self, chunks: dict[str, str | bytes], sessions: dict[str, list[str]] | None = None) -> None:
        self.chunks = chunks
        self.sessions = sessions or {}
        self.fetched: list[str] = []

    def list_sources(self, session_id: str) -> list[ChunkLocator]:
        return [ChunkLocator(source="blob_v2", start_blob_key=key, end_blob_key=key) for key in self.sessions[session_id]]

    def fetch_chunk(self, locator: ChunkLocator) -> str | bytes:
        key, _ = locator.key_range
        self.fetched.append(key)
        return self.chunks[key]


def gzip_binary_string(value: Any) -> str:
    """Encodes a JSON value the way the recording service ships compressed fields."""
    return gzip.compress(json.dumps(value).encode("utf-8")).decode("latin-1")


@pytest.fixture
def gzip_field() -> Callable[[Any], str]:
    return gzip_binary_string


@pytest.fixture
def replayer_factory() -> ReplayerRecorder:
    return ReplayerRecorder()


@pytest.fixture
def fake_audio() -> FakeAudio:
    return FakeAudio()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fetcher_factory() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def make_event() -> Callable[..., RecordingEvent]:
    def _make_event(kind: EventType | int, timestamp: int | None, payload: Any = None) -> RecordingEvent:
        return RecordingEvent(kind=EventType(kind), timestamp=timestamp, payload=payload)

    return _make_event


@pytest.fixture
def recording(make_event) -> list[RecordingEvent]:
    """A 10 second recording: meta, full snapshot, then one mutation per second."""
    events = [
        make_event(EventType.META, 1000, {"width": 390, "height": 699, "href": "https://app.example"}),
        make_event(EventType.FULL_STATE, 1000, {"node": {"id": 1}}),
    ]
    for second in range(1, 11):
        events.append(
            make_event(
                EventType.INCREMENTAL,
                1000 + second * 1000,
                {"source": 0, "removes": [], "adds": [{"id": second}], "texts": [], "attributes": []},
            )
        )
    return events


@pytest.fixture(autouse=True)
def _silence_halo(monkeypatch):
    """Replace Halo spinners with a no-op context manager for tests."""

    class _DummyHalo:
        def __init__(self, *args, **kwargs):
            self.text = kwargs.get("text")

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    monkeypatch.setattr("replaysync.utils.timeline_utils.Halo", _DummyHalo, raising=False)
    monkeypatch.setattr("replaysync.__main__.Halo", _DummyHalo, raising=False)


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog
