"""
Playback controller driving a sequential replay primitive.

The replay primitive can only be built over an ordered event list and played
forward from that list's start. Seeking is therefore done by destroying the
current instance and building a new one over the prefix of events up to the
seek target: the new instance renders the target state while paused, and its
clock restarts at zero. Virtual time after a seek is re-based as
``seek_base_ms + primitive_time`` until the next ``load()``.

Virtual time is polled from the primitive on a coarse tick, so reported time
lags the primitive by at most one tick interval.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from typing import TypeAlias

from replaysync.domain import (
    PlaybackPhase,
    PlaybackState,
    RecordingEvent,
    recording_duration_ms,
)
from replaysync.errors import PlaybackStateError, SeekPreconditionError
from replaysync.ingest.assembler import require_full_state
from replaysync.playback.contracts import (
    Cancellable,
    InstanceHook,
    Replayer,
    ReplayerFactory,
    ReplayerOptions,
    Scheduler,
)
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)

MIN_REPLAYER_EVENTS = 2
# Re-based reads further than this past the end are treated as stale.
REBASE_OVERSHOOT_MS = 1000

StateListener: TypeAlias = Callable[[PlaybackState], None]


def build_seek_prefix(
    events: Sequence[RecordingEvent], target_timestamp: float
) -> list[RecordingEvent]:
    """
    Selects the events a fresh replayer needs to render ``target_timestamp``.

    Events stamped at or before the target are kept in sequence order, with
    the first full snapshot moved to the front. When the target precedes every
    full snapshot, the recording's first full snapshot is used. A prefix
    shorter than two events is extended with the next event in sequence.

    Raises:
        SeekPreconditionError: If fewer than two events remain after extension.
    """
    selected = [
        index
        for index, event in enumerate(events)
        if event.timestamp is not None and event.timestamp <= target_timestamp
    ]
    full_index = next(
        (index for index in selected if events[index].is_full_state), None
    )
    if full_index is None:
        full_index = next(
            (index for index, event in enumerate(events) if event.is_full_state),
            None,
        )
        if full_index is None:
            raise SeekPreconditionError("No full snapshot available to seek from")
        selected = sorted({*selected, full_index})

    if len(selected) < MIN_REPLAYER_EVENTS:
        following = next(
            (
                index
                for index in range(max(selected) + 1, len(events))
                if events[index].timestamp is not None
            ),
            None,
        )
        if following is not None:
            selected.append(following)

    if len(selected) < MIN_REPLAYER_EVENTS:
        raise SeekPreconditionError(
            f"Cannot rebuild replayer: need at least {MIN_REPLAYER_EVENTS} events, "
            f"got {len(selected)}"
        )
    return [events[full_index]] + [
        events[index] for index in selected if index != full_index
    ]


class PlaybackController:
    """Owns the replay primitive, virtual time, and the play/seek state machine."""

    def __init__(
        self,
        replayer_factory: ReplayerFactory,
        *,
        speed: float = 1.0,
        playback_rates: Sequence[float] = (1.0, 2.0),
        scheduler: Scheduler | None = None,
        tick_interval_ms: int = 500,
        mount_point: object = None,
    ) -> None:
        self.playback_rates: tuple[float, ...] = tuple(playback_rates)
        if speed not in self.playback_rates:
            raise ValueError(
                f"Speed {speed} is not one of the playback rates {self.playback_rates}"
            )
        self._factory = replayer_factory
        self._scheduler = scheduler
        self._tick_interval_ms = tick_interval_ms
        self._mount_point = mount_point
        self._events: list[RecordingEvent] = []
        self._first_timestamp: int | None = None
        self._replayer: Replayer | None = None
        self._generation = 0
        self._tick: Cancellable | None = None
        self._listeners: list[StateListener] = []
        self._instance_hooks: list[InstanceHook] = []
        self._state = PlaybackState(playback_rate=speed)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def events(self) -> tuple[RecordingEvent, ...]:
        return tuple(self._events)

    @property
    def first_timestamp(self) -> int | None:
        return self._first_timestamp

    @property
    def replayer(self) -> Replayer | None:
        return self._replayer

    def subscribe(self, listener: StateListener) -> None:
        """Registers a callback invoked with every new playback state."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_instance_hook(self, hook: InstanceHook) -> None:
        """Registers a best-effort side effect run after each replayer build.

        Hooks receive the new replayer and an ``is_current`` callable; delayed
        work must check ``is_current()`` before touching the instance.
        """
        self._instance_hooks.append(hook)

    def load(self, events: Iterable[RecordingEvent]) -> None:
        """Replaces the recording and builds a replayer over all of its events."""
        sequence = list(events)
        require_full_state(sequence)

        self._teardown()
        self._events = sequence
        self._first_timestamp = next(
            (event.timestamp for event in sequence if event.timestamp is not None),
            None,
        )
        duration = recording_duration_ms(sequence)

        self._build(sequence)
        self._set_state(
            PlaybackState(
                phase=PlaybackPhase.READY,
                virtual_time_ms=0.0,
                is_playing=False,
                playback_rate=self._state.playback_rate,
                seek_base_ms=None,
                duration_ms=duration,
            )
        )
        self._start_polling()
        logger.info("Loaded %d events spanning %d ms", len(sequence), duration)

    def play(self) -> None:
        """Asks the replayer to play; state follows its start notification.

        After a seek the replayer only holds the events up to the seek target,
        so playing replays that prefix from its beginning (a visible rewind)
        while virtual time continues from the seek position.
        """
        self._require_replayer().play()

    def pause(self) -> None:
        self._require_replayer().pause()

    def set_rate(self, rate: float) -> None:
        """Changes playback speed on the live replayer without rebuilding it."""
        if rate not in self.playback_rates:
            raise ValueError(
                f"Rate {rate} is not one of the playback rates {self.playback_rates}"
            )
        if self._replayer is not None:
            self._replayer.set_config(speed=rate)
        self._update(playback_rate=rate)

    def seek(self, target_ms: float) -> None:
        """
        Moves playback to ``target_ms`` of virtual time, leaving it paused.

        Raises:
            PlaybackStateError: If no recording is loaded.
            SeekPreconditionError: If the recording cannot be rebuilt at the
                target; the previous position is kept.
        """
        replayer = self._require_replayer()
        if self._first_timestamp is None:
            raise SeekPreconditionError("Recording has no timestamped events")
        if isinstance(target_ms, bool) or not math.isfinite(target_ms):
            raise ValueError(f"Seek target must be a finite number, got {target_ms!r}")

        target = min(max(0.0, float(target_ms)), float(self._state.duration_ms))
        prefix = build_seek_prefix(self._events, self._first_timestamp + target)
        logger.debug(
            "Seeking to %.0f ms with %d of %d events",
            target,
            len(prefix),
            len(self._events),
        )

        was_playing = self._state.is_playing
        self._update(phase=PlaybackPhase.SEEKING, is_playing=False)
        if was_playing:
            replayer.pause()
        self._teardown()
        try:
            self._build(prefix)
        except Exception:
            self._update(phase=PlaybackPhase.UNINITIALIZED, is_playing=False)
            raise
        self._update(
            phase=PlaybackPhase.READY,
            is_playing=False,
            virtual_time_ms=target,
            seek_base_ms=target,
        )

    def seek_percent(self, fraction: float) -> None:
        """Seeks to a fraction of the recording length."""
        self.seek(min(max(0.0, fraction), 1.0) * self._state.duration_ms)

    def poll(self) -> None:
        """Refreshes virtual time from the replayer's clock."""
        if self._replayer is None or self._state.phase in (
            PlaybackPhase.UNINITIALIZED,
            PlaybackPhase.SEEKING,
        ):
            return
        try:
            reported = self._replayer.get_current_time()
        except Exception as err:
            logger.debug("Replayer time read failed: %s", err)
            return
        if (
            isinstance(reported, bool)
            or not isinstance(reported, (int, float))
            or not math.isfinite(reported)
            or reported < 0
        ):
            return

        base = self._state.seek_base_ms
        if base is None:
            current = float(reported)
        else:
            current = base + reported
            if current > self._state.duration_ms + REBASE_OVERSHOOT_MS:
                current = base
        self._update(virtual_time_ms=current)

    def close(self) -> None:
        """Stops polling and releases the replayer."""
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None
        self._teardown()
        self._update(phase=PlaybackPhase.UNINITIALIZED, is_playing=False)

    def _require_replayer(self) -> Replayer:
        if self._replayer is None or self._state.phase is PlaybackPhase.UNINITIALIZED:
            raise PlaybackStateError("No recording loaded")
        return self._replayer

    def _build(self, events: Sequence[RecordingEvent]) -> None:
        self._generation += 1
        generation = self._generation
        replayer = self._factory(
            [event.to_record() for event in events],
            ReplayerOptions(
                speed=self._state.playback_rate,
                live_mode=False,
                mouse_tail=True,
                mount_point=self._mount_point,
            ),
        )
        replayer.on("start", lambda: self._on_start(generation))
        replayer.on("pause", lambda: self._on_pause(generation))
        replayer.on("finish", lambda: self._on_finish(generation))
        self._replayer = replayer

        def is_current() -> bool:
            return self._generation == generation and self._replayer is replayer

        for hook in self._instance_hooks:
            try:
                hook(replayer, is_current)
            except Exception:
                logger.warning("Replayer instance hook failed", exc_info=True)

    def _teardown(self) -> None:
        replayer, self._replayer = self._replayer, None
        if replayer is None:
            return
        # Notifications from the released instance must not reach state.
        self._generation += 1
        try:
            replayer.pause()
        finally:
            replayer.destroy()

    def _on_start(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._update(phase=PlaybackPhase.PLAYING, is_playing=True)

    def _on_pause(self, generation: int) -> None:
        if generation != self._generation:
            return
        if self._state.phase is PlaybackPhase.SEEKING:
            self._update(is_playing=False)
            return
        self._update(phase=PlaybackPhase.READY, is_playing=False)

    def _on_finish(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._update(phase=PlaybackPhase.FINISHED, is_playing=False)

    def _start_polling(self) -> None:
        if self._scheduler is None or self._tick is not None:
            return
        self._tick = self._scheduler.call_every(
            self._tick_interval_ms / 1000, self.poll
        )

    def _update(self, **changes: object) -> None:
        self._set_state(replace(self._state, **changes))

    def _set_state(self, state: PlaybackState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
