"""Shared test fixtures for tempo and rotation tests."""

import itertools

import numpy as np
import pytest
from fastapi.testclient import TestClient

from orbitbeat.main import app


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_burst_track(
    interval_seconds: float,
    duration_seconds: float = 10.0,
    sr: int = 44100,
    burst_seconds: float = 0.03,
    offset_samples: int = 1000,
    amplitude: float = 0.8,
) -> np.ndarray:
    """Silence with a constant-amplitude burst every ``interval_seconds``.

    ``offset_samples`` keeps bursts off the analysis hop grid so each burst
    has one energy window that contains more of it than its neighbours.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)
    burst_len = int(burst_seconds * sr)
    step = int(round(interval_seconds * sr))

    for start in range(offset_samples, n_samples, step):
        end = min(start + burst_len, n_samples)
        audio[start:end] = amplitude
    return audio


class ManualFrameScheduler:
    """Frame scheduler fired by hand from tests."""

    def __init__(self):
        self.pending: dict[int, object] = {}
        self.cancelled: list[int] = []
        self._ids = itertools.count()

    def request_frame(self, callback):
        handle = next(self._ids)
        self.pending[handle] = callback
        return handle

    def cancel_frame(self, handle):
        self.pending.pop(handle, None)
        self.cancelled.append(handle)

    def fire(self, elapsed: float = 1 / 60):
        """Run every pending callback once."""
        callbacks = list(self.pending.values())
        self.pending.clear()
        for callback in callbacks:
            callback(elapsed)


@pytest.fixture
def scheduler():
    return ManualFrameScheduler()


@pytest.fixture
def burst_120():
    """Bursts every 0.5s at 44.1kHz (120 BPM)."""
    return generate_burst_track(interval_seconds=0.5)
