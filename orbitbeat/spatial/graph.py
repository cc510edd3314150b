"""Audio graph nodes owned by the rotation engine.

Chain wired by the engine:

    SourceNode -> GainNode -> AnalyserNode -> PannerNode -> DestinationNode

Blocks are numpy arrays, either mono ``(n,)`` or ``(channels, n)``. The
panner only carries position and rendering parameters; binaural rendering
happens downstream of the destination.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from scipy.signal import get_window

from orbitbeat.config import settings
from orbitbeat.spatial.models import Position, START_POSITION


class SourceInUseError(RuntimeError):
    """A source node is already owned by another engine."""


class AudioNode:
    """Base node: render a block, then forward it to every connected node."""

    def __init__(self) -> None:
        self._outputs: list[AudioNode] = []

    @property
    def outputs(self) -> list[AudioNode]:
        return list(self._outputs)

    def connect(self, node: AudioNode) -> AudioNode:
        if node not in self._outputs:
            self._outputs.append(node)
        return node

    def disconnect(self) -> None:
        self._outputs.clear()

    def process(self, block: np.ndarray) -> None:
        rendered = self._render(np.asarray(block, dtype=np.float32))
        for node in self._outputs:
            node.process(rendered)

    def _render(self, block: np.ndarray) -> np.ndarray:
        return block


class SourceNode(AudioNode):
    """Entry point for decoded audio; at most one owner at a time."""

    def __init__(self) -> None:
        super().__init__()
        self._owner: object | None = None

    @property
    def owner(self) -> object | None:
        return self._owner

    def acquire(self, owner: object) -> None:
        if self._owner is not None and self._owner is not owner:
            raise SourceInUseError(f"Source already owned by {self._owner!r}")
        self._owner = owner

    def release(self, owner: object) -> None:
        if self._owner is owner:
            self._owner = None

    def push(self, block: np.ndarray) -> None:
        self.process(block)


class GainNode(AudioNode):
    def __init__(self, gain: float = 1.0) -> None:
        super().__init__()
        self.gain = 1.0
        self.set_gain(gain)

    def set_gain(self, value: float) -> None:
        self.gain = max(0.0, min(1.0, float(value)))

    def _render(self, block: np.ndarray) -> np.ndarray:
        return block * self.gain


class AnalyserNode(AudioNode):
    """Byte-scaled magnitude spectrum of the most recent audio.

    Keeps the last ``fft_size`` mono samples. Each processed block updates
    the spectrum: Blackman window, real FFT, exponential smoothing over
    time, decibels, then ``[min_decibels, max_decibels]`` mapped onto 0..255.
    """

    def __init__(
        self,
        fft_size: int | None = None,
        smoothing: float | None = None,
        min_decibels: float | None = None,
        max_decibels: float | None = None,
    ) -> None:
        super().__init__()
        self.fft_size = fft_size if fft_size is not None else settings.analyser_fft_size
        self.smoothing = smoothing if smoothing is not None else settings.analyser_smoothing
        self.min_decibels = min_decibels if min_decibels is not None else settings.analyser_min_decibels
        self.max_decibels = max_decibels if max_decibels is not None else settings.analyser_max_decibels
        if self.fft_size < 32 or self.fft_size & (self.fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {self.fft_size}")

        self._window = get_window("blackman", self.fft_size, fftbins=False)
        self._time_data = np.zeros(self.fft_size, dtype=np.float64)
        self._magnitudes = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._byte_data = np.zeros(self.frequency_bin_count, dtype=np.uint8)

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def _render(self, block: np.ndarray) -> np.ndarray:
        mono = block.mean(axis=0) if block.ndim > 1 else block
        if len(mono) > 0:
            self._push_samples(mono)
            self._update_spectrum()
        return block

    def _push_samples(self, mono: np.ndarray) -> None:
        n = len(mono)
        if n >= self.fft_size:
            self._time_data[:] = mono[-self.fft_size:]
        else:
            self._time_data = np.roll(self._time_data, -n)
            self._time_data[-n:] = mono

    def _update_spectrum(self) -> None:
        spectrum = np.fft.rfft(self._time_data * self._window)[: self.frequency_bin_count]
        magnitudes = np.abs(spectrum) / self.fft_size
        self._magnitudes = self.smoothing * self._magnitudes + (1.0 - self.smoothing) * magnitudes

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(self._magnitudes)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.clip((decibels - self.min_decibels) * scale, 0.0, 255.0)
        self._byte_data = np.floor(scaled).astype(np.uint8)

    def get_byte_frequency_data(self) -> np.ndarray:
        return self._byte_data.copy()


class PannerNode(AudioNode):
    """Position and parameters for the external spatial renderer."""

    def __init__(self, position: Position = START_POSITION) -> None:
        super().__init__()
        self.panning_model = "HRTF"
        self.distance_model = "linear"
        self.ref_distance = 1.0
        self.max_distance = 10.0
        self.rolloff_factor = 1.0
        self.cone_inner_angle = 180.0
        self.cone_outer_angle = 360.0
        self.cone_outer_gain = 0.8
        self.position = position

    def set_position(self, position: Position) -> None:
        self.position = position


class DestinationNode(AudioNode):
    """Graph output; hands rendered blocks to an optional sink."""

    def __init__(self, sink: Callable[[np.ndarray], None] | None = None) -> None:
        super().__init__()
        self.sink = sink

    def _render(self, block: np.ndarray) -> np.ndarray:
        if self.sink is not None:
            self.sink(block)
        return block
