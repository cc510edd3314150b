"""Core data models for tempo analysis."""

from dataclasses import dataclass, field

import numpy as np

FALLBACK_BPM = 120
FALLBACK_CONFIDENCE = 0.5
FALLBACK_OPTIMAL_SPEED = 2.0

# Reported for every successful analysis; not derived from the signal.
ANALYSIS_CONFIDENCE = 0.85


@dataclass(frozen=True)
class PcmBuffer:
    """Decoded audio: one float array per channel plus the sample rate."""
    channels: tuple[np.ndarray, ...]
    sample_rate: int  # Hz

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        if len(self.channels) == 0:
            raise ValueError("PCM buffer needs at least one channel")

        frozen = []
        for ch in self.channels:
            arr = np.array(ch, dtype=np.float32).ravel()
            arr.setflags(write=False)
            frozen.append(arr)
        if len({len(ch) for ch in frozen}) != 1:
            raise ValueError("All channels must have the same length")
        object.__setattr__(self, "channels", tuple(frozen))

    @classmethod
    def from_array(cls, audio: np.ndarray, sample_rate: int) -> "PcmBuffer":
        """Build from a mono ``(n,)`` or ``(channels, n)`` array."""
        audio = np.asarray(audio)
        if audio.ndim == 1:
            return cls(channels=(audio,), sample_rate=sample_rate)
        return cls(channels=tuple(audio), sample_rate=sample_rate)

    @property
    def num_samples(self) -> int:
        return len(self.channels[0])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.num_samples / self.sample_rate


@dataclass(frozen=True)
class TempoEstimate:
    """Tempo of a file and the rotation speed derived from it."""
    bpm: int  # clamped to [60, 200]
    confidence: float  # 0.0-1.0
    optimal_speed: float  # 0.5-5.0
    is_fallback: bool = field(default=False, compare=False)

    @classmethod
    def fallback(cls) -> "TempoEstimate":
        """Deterministic estimate used whenever analysis cannot finish."""
        return cls(
            bpm=FALLBACK_BPM,
            confidence=FALLBACK_CONFIDENCE,
            optimal_speed=FALLBACK_OPTIMAL_SPEED,
            is_fallback=True,
        )
