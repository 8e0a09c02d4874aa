"""Collaborator contracts for the replay primitive, audio element, and tick scheduler."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias


@dataclass(frozen=True, slots=True)
class ReplayerOptions:
    """Construction options passed to the replay primitive."""

    speed: float = 1.0
    live_mode: bool = False
    mouse_tail: bool = True
    mount_point: Any = None


class Replayer(Protocol):
    """Sequential replay primitive built over a fixed event list.

    The primitive has no random-access API: it renders the state reached by
    applying its whole event list and plays forward from the list's start.
    """

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def get_current_time(self) -> float | None:
        """Returns milliseconds elapsed on the primitive's own clock."""
        ...

    def set_config(self, *, speed: float) -> None: ...

    def on(self, event_name: str, callback: Callable[[], None]) -> None:
        """Subscribes to a lifecycle notification (start, pause, finish)."""
        ...

    def destroy(self) -> None:
        """Releases rendering resources held by this instance."""
        ...


ReplayerFactory: TypeAlias = Callable[[list[dict[str, Any]], ReplayerOptions], Replayer]
InstanceHook: TypeAlias = Callable[[Replayer, Callable[[], bool]], None]


class AudioElement(Protocol):
    """Media element playing the call-audio track."""

    current_time: float
    playback_rate: float

    @property
    def paused(self) -> bool: ...

    @property
    def duration(self) -> float | None:
        """Returns the track length in seconds, None before metadata loads."""
        ...

    @property
    def ready_state(self) -> int: ...

    def play(self) -> None:
        """Starts playback; may raise when the element refuses to play."""
        ...

    def pause(self) -> None: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Schedules periodic callbacks on the playback thread."""

    def call_every(
        self, interval_seconds: float, callback: Callable[[], None]
    ) -> Cancellable: ...
