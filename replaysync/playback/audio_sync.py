"""Keeps the call-audio element aligned with the replay's virtual clock."""

from __future__ import annotations

import logging
import math

from replaysync.config import AudioSyncSettings
from replaysync.domain import CallWindow, PlaybackPhase, PlaybackState
from replaysync.playback.contracts import AudioElement
from replaysync.playback.timeline import audio_position_seconds, is_within_call
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)


class AudioSyncController:
    """
    Nudges the call-audio element toward the position implied by virtual time.

    Position writes are guarded three ways: the drift must exceed the
    hysteresis threshold, the move must be forward or a large backward jump,
    and the target must differ from the last position this controller wrote.
    The last guard keeps the controller from re-correcting its own writes.
    """

    def __init__(
        self,
        audio: AudioElement | None,
        window: CallWindow | None,
        *,
        settings: AudioSyncSettings | None = None,
        enabled: bool = True,
    ) -> None:
        self.audio = audio
        self.window = window
        self.settings = settings or AudioSyncSettings()
        self.enabled = enabled
        self.last_set_position: float = -1.0
        self.audio_duration_ms: float = 0.0
        self.audio_current_time_ms: float = 0.0

    @property
    def configured(self) -> bool:
        return self.audio is not None and self.window is not None

    def evaluate(self, state: PlaybackState) -> None:
        """Re-aligns the audio element with one playback state."""
        audio = self.audio
        if audio is None:
            return
        if not self.enabled or self.window is None:
            self._pause()
            return
        if state.phase is PlaybackPhase.SEEKING:
            self._pause()
            return

        window = self.window
        current = state.virtual_time_ms
        if is_within_call(current, window.offset_ms, window.duration_ms):
            target = audio_position_seconds(
                current, window.offset_ms, state.playback_rate
            )
            if self.should_write(target, audio.current_time):
                self._write_position(target)
            if (
                state.is_playing
                and audio.paused
                and audio.ready_state >= self.settings.min_ready_state
            ):
                self._start()
            return

        self._pause()
        if current < window.offset_ms - self.settings.boundary_guard_ms:
            if (
                audio.current_time > self.settings.distinct_position_s
                and self.last_set_position != 0
            ):
                self._write_position(0.0)
        elif current > window.end_ms:
            end = self._end_position()
            if (
                audio.current_time < end - self.settings.distinct_position_s
                and self.last_set_position != end
            ):
                self._write_position(end)

    def should_write(self, target: float, audio_time: float) -> bool:
        """Returns whether a computed target warrants a position write."""
        drift = target - audio_time
        return (
            abs(drift) > self.settings.hysteresis_s
            and (drift > 0 or abs(drift) > self.settings.backward_jump_s)
            and abs(target - self.last_set_position) > self.settings.distinct_position_s
        )

    def on_seek(self, target_ms: float, rate: float) -> None:
        """Pauses audio and moves it to the seek target without resuming."""
        if self.audio is None:
            return
        self._pause()
        if not self.enabled or self.window is None:
            return
        window = self.window
        if is_within_call(target_ms, window.offset_ms, window.duration_ms):
            self._write_position(
                audio_position_seconds(target_ms, window.offset_ms, rate)
            )
        elif target_ms < window.offset_ms:
            self._write_position(0.0)
        else:
            self._write_position(self._end_position())

    def on_play(self, state: PlaybackState) -> None:
        """Starts audio on an explicit play when virtual time is inside the call."""
        if not self.configured or not self.enabled:
            return
        window = self.window
        if is_within_call(state.virtual_time_ms, window.offset_ms, window.duration_ms):
            self._start()

    def pause(self) -> None:
        if self.audio is not None:
            self._pause()

    def set_enabled(self, enabled: bool, state: PlaybackState) -> None:
        """Mutes or unmutes the call track and re-evaluates it."""
        self.enabled = enabled
        logger.info("Call audio %s", "enabled" if enabled else "disabled")
        self.evaluate(state)

    def on_rate_change(self, rate: float) -> None:
        if self.audio is not None:
            self.audio.playback_rate = rate

    def on_loaded_metadata(self) -> None:
        if self.audio is not None:
            self.audio_duration_ms = self._end_position() * 1000

    def on_time_update(self) -> None:
        if self.audio is not None:
            self.audio_current_time_ms = self.audio.current_time * 1000

    def on_ended(self) -> None:
        """Pins the audio at its end so it does not loop."""
        if self.audio is None:
            return
        end = self._end_position()
        self.audio.current_time = end
        self.audio_current_time_ms = end * 1000

    def _end_position(self) -> float:
        duration = self.audio.duration if self.audio is not None else None
        if duration is None or not math.isfinite(duration):
            return 0.0
        return float(duration)

    def _write_position(self, position: float) -> None:
        self.audio.current_time = position
        self.last_set_position = position
        logger.debug("Audio position set to %.3f s", position)

    def _pause(self) -> None:
        if not self.audio.paused:
            self.audio.pause()

    def _start(self) -> None:
        try:
            self.audio.play()
        except Exception as err:
            logger.error("Error playing audio: %s", err)
