"""Tests for energy-peak tempo estimation."""

import asyncio

import numpy as np
import pytest
import soundfile as sf

from orbitbeat.analysis.energy import pick_peaks, short_time_energy
from orbitbeat.analysis.models import PcmBuffer, TempoEstimate
from orbitbeat.analysis.tempo import NoTempoError, TempoEstimator, map_speed
from tests.conftest import generate_burst_track


def _pcm(audio: np.ndarray, sr: int = 44100) -> PcmBuffer:
    return PcmBuffer.from_array(audio, sr)


def test_short_time_energy_windows_and_hop():
    energy, hop = short_time_energy(np.ones(100), sr=100, window_seconds=0.1)
    assert hop == 5
    # windows start at 0, 5, ..., 85 (strictly before 100 - 10)
    assert len(energy) == 18
    assert np.allclose(energy, 1.0)


def test_short_time_energy_shorter_than_window():
    energy, hop = short_time_energy(np.ones(50), sr=1000, window_seconds=0.1)
    assert len(energy) == 0
    assert hop == 50


def test_pick_peaks_applies_relative_threshold():
    energy = np.array([0.0, 0.5, 0.0, 2.0, 0.0])
    assert pick_peaks(energy, 0.3).tolist() == [3]


def test_pick_peaks_ignores_plateaus_and_edges():
    assert pick_peaks(np.array([0.0, 1.0, 1.0, 0.0])).tolist() == []
    assert pick_peaks(np.array([5.0, 1.0, 0.0])).tolist() == []


def test_periodic_bursts_give_120_bpm(burst_120):
    result = TempoEstimator().estimate(_pcm(burst_120))
    assert result.bpm == 120
    assert result.confidence == 0.85
    assert result.optimal_speed == map_speed(120)
    assert not result.is_fallback


def test_periodic_bursts_give_100_bpm():
    audio = generate_burst_track(interval_seconds=0.6)
    assert TempoEstimator().estimate(_pcm(audio)).bpm == 100


def test_fast_tempo_is_clamped_to_200():
    audio = generate_burst_track(interval_seconds=0.2)
    assert TempoEstimator().estimate(_pcm(audio)).bpm == 200


def test_slow_tempo_is_clamped_to_60():
    audio = generate_burst_track(interval_seconds=2.0)
    assert TempoEstimator().estimate(_pcm(audio)).bpm == 60


def test_only_first_channel_is_analyzed():
    left = generate_burst_track(interval_seconds=0.5)
    right = generate_burst_track(interval_seconds=0.2)
    pcm = PcmBuffer.from_array(np.stack([left, right]), 44100)
    assert TempoEstimator().estimate(pcm).bpm == 120


def test_silence_returns_fallback():
    result = TempoEstimator().estimate(_pcm(np.zeros(44100 * 5, dtype=np.float32)))
    assert result == TempoEstimate(bpm=120, confidence=0.5, optimal_speed=2.0)
    assert result.is_fallback


def test_detect_bpm_raises_without_intervals():
    with pytest.raises(NoTempoError):
        TempoEstimator().detect_bpm(_pcm(np.zeros(44100, dtype=np.float32)))


def test_audio_shorter_than_window_returns_fallback():
    result = TempoEstimator().estimate(_pcm(np.ones(100, dtype=np.float32)))
    assert result == TempoEstimate.fallback()


def test_degenerate_sample_rate_returns_fallback():
    result = TempoEstimator().estimate(PcmBuffer.from_array(np.ones(1000), sample_rate=10))
    assert result == TempoEstimate.fallback()


def test_pcm_buffer_rejects_invalid_input():
    with pytest.raises(ValueError):
        PcmBuffer(channels=(), sample_rate=44100)
    with pytest.raises(ValueError):
        PcmBuffer(channels=(np.zeros(10),), sample_rate=0)
    with pytest.raises(ValueError):
        PcmBuffer(channels=(np.zeros(10), np.zeros(11)), sample_rate=44100)


def test_pcm_buffer_is_read_only():
    pcm = _pcm(np.zeros(10))
    with pytest.raises(ValueError):
        pcm.channels[0][0] = 1.0


def test_analyze_file(tmp_path, burst_120):
    wav_path = tmp_path / "bursts.wav"
    sf.write(str(wav_path), burst_120, 44100)

    result = TempoEstimator().analyze_file(str(wav_path))
    assert result.bpm == 120
    assert result.confidence == 0.85


def test_analyze_file_undecodable_returns_fallback(tmp_path):
    bad_path = tmp_path / "broken.wav"
    bad_path.write_bytes(b"not audio at all")

    result = TempoEstimator().analyze_file(str(bad_path))
    assert result == TempoEstimate.fallback()


def test_analyze_file_async(tmp_path, burst_120):
    wav_path = tmp_path / "bursts.wav"
    sf.write(str(wav_path), burst_120, 44100)

    result = asyncio.run(TempoEstimator().analyze_file_async(str(wav_path)))
    assert result.bpm == 120


def test_analyze_file_async_missing_file_returns_fallback(tmp_path):
    result = asyncio.run(TempoEstimator().analyze_file_async(str(tmp_path / "missing.wav")))
    assert result.is_fallback


def test_map_speed_range():
    for bpm in range(60, 201):
        assert 0.5 <= map_speed(bpm) <= 5.0


def test_map_speed_values():
    assert map_speed(120) == 0.5
    assert map_speed(150) == 0.63
    assert map_speed(200) == 0.83
    assert map_speed(600) == 2.5
    assert map_speed(6000) == 5.0
