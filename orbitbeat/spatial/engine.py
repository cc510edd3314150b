"""Tempo-synchronised circular rotation of a virtual source around the listener."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import asdict
from typing import Any, Callable, Hashable, Mapping

import numpy as np

from orbitbeat.config import settings
from orbitbeat.spatial.graph import AnalyserNode, DestinationNode, GainNode, PannerNode, SourceNode
from orbitbeat.spatial.models import (
    CENTER_FRONT,
    START_POSITION,
    Position,
    RotationState,
    SpatializationConfig,
)
from orbitbeat.spatial.scheduler import FrameScheduler

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Position], None]


class SpatialRotationEngine:
    """Moves a source on a horizontal circle around the listener.

    Two states, stopped (initial) and running. ``start``/``stop`` are
    idempotent and ``tick`` is a no-op while stopped. Each tick advances
    the angle by ``speed * angle_step`` per reference frame and places the
    source at ``(cos(angle), 0, sin(angle)) * radius * intensity``.

    Ticks come either from explicit ``tick()`` calls or from a
    ``FrameScheduler``; with a scheduler at most one frame request is
    outstanding and ``stop()`` cancels it before returning.

    The engine takes exclusive ownership of ``source`` and wires
    ``source -> gain -> analyser -> panner -> destination``. ``destroy()``
    tears the chain down and releases the source; a destroyed engine
    ignores further calls.
    """

    def __init__(
        self,
        source: SourceNode,
        destination: DestinationNode | None = None,
        config: SpatializationConfig | None = None,
        scheduler: FrameScheduler | None = None,
        on_position: PositionCallback | None = None,
    ):
        source.acquire(self)
        self._source = source
        self._destination = destination if destination is not None else DestinationNode()
        self._config = SpatializationConfig().merged(asdict(config)) if config is not None else SpatializationConfig()
        self._scheduler = scheduler
        self._on_position = on_position

        self._state = RotationState()
        self._position = START_POSITION
        self._frame_handle: Hashable | None = None
        self._destroyed = False
        self._lock = threading.RLock()

        self._gain = GainNode()
        self._analyser = AnalyserNode()
        self._panner = PannerNode(START_POSITION)
        self._connect_nodes()

    def _connect_nodes(self) -> None:
        # Drop whatever the source fed before; the engine owns its output now
        self._source.disconnect()
        self._source.connect(self._gain)
        self._gain.connect(self._analyser)
        self._analyser.connect(self._panner)
        self._panner.connect(self._destination)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> SpatializationConfig:
        return self._config

    @property
    def state(self) -> RotationState:
        with self._lock:
            return RotationState(angle=self._state.angle, is_active=self._state.is_active)

    @property
    def angle(self) -> float:
        return self._state.angle

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def position(self) -> Position:
        return self._position

    @property
    def panner(self) -> PannerNode:
        return self._panner

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        with self._lock:
            if self._destroyed:
                logger.warning("start() on a destroyed engine ignored")
                return
            if self._state.is_active:
                return
            self._state.is_active = True
            if self._scheduler is not None and self._frame_handle is None:
                self._frame_handle = self._scheduler.request_frame(self._on_frame)
            logger.debug(f"Rotation started at angle {self._state.angle:.3f}")

    def stop(self) -> None:
        """Stop rotating and park the source at the centre-front point."""
        with self._lock:
            if self._destroyed:
                return
            self._state.is_active = False
            if self._frame_handle is not None:
                self._scheduler.cancel_frame(self._frame_handle)
                self._frame_handle = None
            position = self._set_position(CENTER_FRONT)
        self._emit(position)

    def destroy(self) -> None:
        """Stop and release every graph connection, including the source."""
        with self._lock:
            if self._destroyed:
                return
            self.stop()
            self._panner.disconnect()
            self._analyser.disconnect()
            self._gain.disconnect()
            self._source.disconnect()
            self._source.release(self)
            self._on_position = None
            self._destroyed = True
            logger.debug("Rotation engine destroyed")

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------

    def tick(self, elapsed: float | None = None) -> Position | None:
        """Advance the rotation.

        Without ``elapsed`` the angle moves by exactly one reference tick,
        ``speed * angle_step``. With ``elapsed`` seconds it moves by
        ``speed * angle_step * reference_frame_rate * elapsed``, so the
        angular velocity does not depend on how often ticks arrive.

        Returns the new position, or None when stopped.
        """
        with self._lock:
            if not self._state.is_active:
                return None
            if elapsed is not None and not math.isfinite(elapsed):
                logger.warning(f"Ignoring non-finite tick elapsed={elapsed!r}")
                elapsed = 0.0
            steps = 1.0 if elapsed is None else max(0.0, elapsed) * settings.reference_frame_rate
            self._state.angle += self._config.speed * settings.angle_step * steps

            distance = self._config.radius * self._config.intensity
            position = self._set_position(Position(
                x=math.cos(self._state.angle) * distance,
                y=0.0,  # horizontal plane only
                z=math.sin(self._state.angle) * distance,
            ))
        self._emit(position)
        return position

    def _on_frame(self, elapsed: float) -> None:
        with self._lock:
            self._frame_handle = None
            if not self._state.is_active or self._destroyed:
                return
        try:
            self.tick(elapsed)
        finally:
            # A failing position callback must not leave a running engine unscheduled
            with self._lock:
                if self._state.is_active and not self._destroyed and self._frame_handle is None:
                    self._frame_handle = self._scheduler.request_frame(self._on_frame)

    def _set_position(self, position: Position) -> Position:
        self._position = position
        self._panner.set_position(position)
        return position

    def _emit(self, position: Position) -> None:
        callback = self._on_position
        if callback is not None:
            callback(position)

    # ------------------------------------------------------------------
    # Configuration and analysis
    # ------------------------------------------------------------------

    def update_config(self, changes: Mapping[str, Any] | None = None, **fields: Any) -> SpatializationConfig:
        """Merge the given fields into the config; others keep their values.

        The angle is untouched, so rotation continues smoothly on the next tick.
        """
        merged_changes = dict(changes or {}, **fields)
        with self._lock:
            if self._destroyed:
                logger.warning("update_config() on a destroyed engine ignored")
                return self._config
            self._config = self._config.merged(merged_changes)
            return self._config

    def set_volume(self, volume: float) -> None:
        """Set the gain, clamped to [0, 1]."""
        with self._lock:
            self._gain.set_gain(volume)

    def snapshot(self) -> np.ndarray:
        """Latest byte-scaled frequency magnitudes (all zeros before any audio)."""
        with self._lock:
            return self._analyser.get_byte_frequency_data()
