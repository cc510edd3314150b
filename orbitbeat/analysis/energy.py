"""Short-time energy envelope and peak picking."""

import numpy as np


def short_time_energy(
    samples: np.ndarray,
    sr: int,
    window_seconds: float = 0.1,
) -> tuple[np.ndarray, int]:
    """Mean squared amplitude over sliding windows with 50% overlap.

    Window ``i`` starts at ``i * hop`` and spans ``window`` samples. Only
    windows starting strictly before ``len(samples) - window`` are used,
    so the tail shorter than a full window is dropped.

    Returns (energy, hop_size).
    """
    window = int(np.floor(sr * window_seconds))
    hop = window // 2
    if window < 2 or hop < 1:
        raise ValueError(f"Analysis window too short: {window} samples at {sr}Hz")

    x = np.asarray(samples, dtype=np.float64).ravel()
    n_windows = len(range(0, len(x) - window, hop))
    if n_windows == 0:
        return np.zeros(0, dtype=np.float64), hop

    # Strided view, no copy; each row is summed on its own so equal
    # windows give bit-identical energies
    frames = np.lib.stride_tricks.sliding_window_view(x * x, window)[::hop][:n_windows]
    energy = frames.sum(axis=1) / window
    return energy, hop


def pick_peaks(energy: np.ndarray, threshold_ratio: float = 0.3) -> np.ndarray:
    """Indices of strict local maxima above ``threshold_ratio * max(energy)``.

    The first and last windows are never peaks.
    """
    if len(energy) < 3:
        return np.zeros(0, dtype=np.int64)

    threshold = float(np.max(energy)) * threshold_ratio
    centre = energy[1:-1]
    is_peak = (centre > energy[:-2]) & (centre > energy[2:]) & (centre > threshold)
    return np.flatnonzero(is_peak) + 1


def peak_times(peaks: np.ndarray, hop: int, sr: int) -> np.ndarray:
    """Convert window indices into seconds."""
    return np.asarray(peaks, dtype=np.float64) * hop / sr


def peak_intervals(times: np.ndarray) -> np.ndarray:
    """Seconds between consecutive peaks."""
    if len(times) < 2:
        return np.zeros(0, dtype=np.float64)
    return np.diff(times)
