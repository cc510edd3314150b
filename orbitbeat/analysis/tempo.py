"""Energy-peak tempo estimation and rotation speed mapping."""

import asyncio
import logging
import math
from io import BytesIO
from pathlib import Path
from typing import Union

import numpy as np

from orbitbeat.analysis.energy import peak_intervals, peak_times, pick_peaks, short_time_energy
from orbitbeat.analysis.models import ANALYSIS_CONFIDENCE, PcmBuffer, TempoEstimate
from orbitbeat.audio.loader import load_pcm
from orbitbeat.config import settings

logger = logging.getLogger(__name__)

MIN_OPTIMAL_SPEED = 0.5
MAX_OPTIMAL_SPEED = 5.0
# One rotation per four beats
BEAT_TO_SPEED = 0.25


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def map_speed(bpm: float) -> float:
    """Map a tempo onto a base rotation frequency in [0.5, 5.0], 2 decimals."""
    beat_freq = bpm / 60.0
    speed = max(MIN_OPTIMAL_SPEED, min(MAX_OPTIMAL_SPEED, beat_freq * BEAT_TO_SPEED))
    return _round_half_up(speed, 2)


class NoTempoError(ValueError):
    """Raised when the energy envelope has fewer than two peaks."""


class TempoEstimator:
    """Derives a TempoEstimate from the first channel of a PCM buffer."""

    def __init__(
        self,
        window_seconds: float | None = None,
        threshold_ratio: float | None = None,
        min_bpm: int | None = None,
        max_bpm: int | None = None,
    ):
        self.window_seconds = window_seconds if window_seconds is not None else settings.energy_window_seconds
        self.threshold_ratio = threshold_ratio if threshold_ratio is not None else settings.peak_threshold_ratio
        self.min_bpm = min_bpm if min_bpm is not None else settings.min_bpm
        self.max_bpm = max_bpm if max_bpm is not None else settings.max_bpm

    def detect_bpm(self, pcm: PcmBuffer) -> int:
        """Average inter-peak interval as an integer BPM, clamped.

        Raises NoTempoError when no interval can be measured.
        """
        samples = pcm.channels[0]
        sr = pcm.sample_rate

        energy, hop = short_time_energy(samples, sr, self.window_seconds)
        peaks = pick_peaks(energy, self.threshold_ratio)
        intervals = peak_intervals(peak_times(peaks, hop, sr))
        if len(intervals) == 0:
            raise NoTempoError(f"{len(peaks)} energy peaks in {pcm.duration:.1f}s, no intervals")

        mean_interval = float(np.mean(intervals))
        # Interval spread is logged only; reported confidence stays fixed
        logger.debug(
            "%d peaks, mean interval %.3fs, std %.3fs",
            len(peaks), mean_interval, float(np.std(intervals)),
        )

        bpm = int(_round_half_up(60.0 / mean_interval))
        return max(self.min_bpm, min(self.max_bpm, bpm))

    def estimate(self, pcm: PcmBuffer) -> TempoEstimate:
        """Estimate tempo; any failure yields ``TempoEstimate.fallback()``."""
        try:
            bpm = self.detect_bpm(pcm)
        except NoTempoError as e:
            logger.info(f"No tempo found, using fallback: {e}")
            return TempoEstimate.fallback()
        except Exception as e:
            logger.warning(f"Tempo analysis failed: {e}")
            return TempoEstimate.fallback()

        optimal_speed = map_speed(bpm)
        logger.info(f"Estimated {bpm} BPM over {pcm.duration:.1f}s, optimal speed {optimal_speed:.2f}")
        return TempoEstimate(bpm=bpm, confidence=ANALYSIS_CONFIDENCE, optimal_speed=optimal_speed)

    def analyze_file(self, file_path_or_buffer: Union[str, Path, BytesIO]) -> TempoEstimate:
        """Decode and estimate; decode errors also yield the fallback."""
        try:
            pcm = load_pcm(file_path_or_buffer)
        except Exception as e:
            logger.warning(f"Failed to decode audio: {e}")
            return TempoEstimate.fallback()
        return self.estimate(pcm)

    async def analyze_file_async(self, file_path_or_buffer: Union[str, Path, BytesIO]) -> TempoEstimate:
        """Run ``analyze_file`` in the default executor."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self.analyze_file, file_path_or_buffer)
        except Exception as e:
            logger.warning(f"Tempo analysis task failed: {e}")
            return TempoEstimate.fallback()
