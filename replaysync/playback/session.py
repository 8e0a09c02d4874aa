"""Replay session wiring the playback controller to the call-audio sync."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from replaysync.config import AppConfig, get_settings
from replaysync.domain import CallSyncConfig, CallWindow, PlaybackState, RecordingEvent
from replaysync.errors import InvalidCallConfigError
from replaysync.playback.audio_sync import AudioSyncController
from replaysync.playback.contracts import AudioElement, ReplayerFactory, Scheduler
from replaysync.playback.controller import PlaybackController
from replaysync.playback.timeline import resolve_call_window
from replaysync.utils.logger import get_logger

logger: logging.Logger = get_logger(__name__)


def build_call_window(config: CallSyncConfig | None) -> CallWindow | None:
    """Resolves call metadata, disabling the call track when it is invalid."""
    if config is None:
        return None
    try:
        return resolve_call_window(config)
    except InvalidCallConfigError as err:
        logger.warning("Call audio disabled: %s", err)
        return None


class ReplaySession:
    """Routes user actions to playback and keeps call audio in step."""

    def __init__(
        self,
        controller: PlaybackController,
        audio_sync: AudioSyncController | None = None,
    ) -> None:
        self.controller = controller
        self.audio_sync = audio_sync
        controller.subscribe(self._on_state)

    @classmethod
    def create(
        cls,
        replayer_factory: ReplayerFactory,
        *,
        audio: AudioElement | None = None,
        call_config: CallSyncConfig | None = None,
        scheduler: Scheduler | None = None,
        settings: AppConfig | None = None,
        mount_point: object = None,
    ) -> ReplaySession:
        """Builds a session from settings, resolving the call window if any."""
        settings = settings or get_settings()
        controller = PlaybackController(
            replayer_factory,
            speed=settings.playback.default_speed,
            playback_rates=settings.playback.playback_rates,
            scheduler=scheduler,
            tick_interval_ms=settings.playback.tick_interval_ms,
            mount_point=mount_point,
        )
        window = build_call_window(call_config)
        audio_sync = None
        if audio is not None and window is not None:
            audio_sync = AudioSyncController(
                audio, window, settings=settings.audio_sync
            )
            audio_sync.on_rate_change(settings.playback.default_speed)
        return cls(controller, audio_sync)

    @property
    def state(self) -> PlaybackState:
        return self.controller.state

    @property
    def call_window(self) -> CallWindow | None:
        return self.audio_sync.window if self.audio_sync is not None else None

    def load(self, events: Iterable[RecordingEvent]) -> None:
        self.controller.load(events)

    def play(self) -> None:
        self.controller.play()
        if self.audio_sync is not None:
            self.audio_sync.on_play(self.controller.state)

    def pause(self) -> None:
        self.controller.pause()
        if self.audio_sync is not None:
            self.audio_sync.pause()

    def toggle_play(self) -> None:
        if self.controller.state.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, target_ms: float) -> None:
        self.controller.seek(target_ms)
        if self.audio_sync is not None:
            state = self.controller.state
            self.audio_sync.on_seek(state.virtual_time_ms, state.playback_rate)

    def set_rate(self, rate: float) -> None:
        self.controller.set_rate(rate)
        if self.audio_sync is not None:
            self.audio_sync.on_rate_change(rate)

    def toggle_audio(self) -> bool:
        """Flips the call-audio mute state and returns the new enabled flag."""
        if self.audio_sync is None:
            return False
        enabled = not self.audio_sync.enabled
        self.audio_sync.set_enabled(enabled, self.controller.state)
        return enabled

    def tick(self) -> None:
        self.controller.poll()

    def close(self) -> None:
        self.controller.close()
        if self.audio_sync is not None:
            self.audio_sync.pause()

    def _on_state(self, state: PlaybackState) -> None:
        if self.audio_sync is not None:
            self.audio_sync.evaluate(state)
