"""Tests for rhythmic multipliers and speed resolution."""

import pytest

from orbitbeat.analysis.models import TempoEstimate
from orbitbeat.analysis.rhythm import (
    RotationMode,
    candidate_ratios,
    closest_ratio,
    resolve_speed,
    snap_multiplier,
)

EXPECTED = [0.25, 0.5, 2 / 3, 0.75, 1.0, 4 / 3, 1.5, 2.0, 2.5, 3.0]


def test_candidate_ratios_sorted_and_bounded():
    ratios = candidate_ratios(120)
    assert ratios == sorted(ratios)
    assert ratios == pytest.approx(EXPECTED)
    assert all(0.25 <= r <= 3.0 for r in ratios)


@pytest.mark.parametrize("bpm", [None, 60, 95, 120, 200])
def test_candidate_ratios_do_not_depend_on_bpm(bpm):
    assert candidate_ratios(bpm) == candidate_ratios(120)


@pytest.mark.parametrize("ratio", EXPECTED)
def test_closest_returns_exact_candidate(ratio):
    assert closest_ratio(ratio, 120) == ratio


def test_closest_near_lower_bound():
    assert closest_ratio(0.26, 120) == 0.25


def test_closest_tie_prefers_lower_ratio():
    # 0.375 is exactly halfway between 0.25 and 0.5
    assert closest_ratio(0.375, 120) == 0.25


def test_closest_outside_range_clamps_to_ends():
    assert closest_ratio(0.0, 120) == 0.25
    assert closest_ratio(10.0, 120) == 3.0


def test_closest_picks_nearest_fraction():
    assert closest_ratio(1.4, 120) == pytest.approx(4 / 3)
    assert closest_ratio(0.7, 120) == pytest.approx(2 / 3)


def test_snap_multiplier_leaves_on_grid_values():
    assert snap_multiplier(1.005, 120) == 1.005
    assert snap_multiplier(1.2, 120) == pytest.approx(4 / 3)


def test_resolve_speed_manual_mode_ignores_estimate():
    estimate = TempoEstimate(bpm=120, confidence=0.85, optimal_speed=0.5)
    assert resolve_speed(RotationMode.MANUAL, 3.0, estimate, 2.0) == 3.0


def test_resolve_speed_automatic_mode_scales_optimal_speed():
    estimate = TempoEstimate(bpm=180, confidence=0.85, optimal_speed=0.75)
    assert resolve_speed("automatic", 3.0, estimate, 2.0) == pytest.approx(1.5)


def test_resolve_speed_automatic_without_estimate_uses_manual():
    assert resolve_speed(RotationMode.AUTOMATIC, 2.5, None, 2.0) == 2.5


def test_resolve_speed_rejects_unknown_mode():
    with pytest.raises(ValueError):
        resolve_speed("sideways", 2.5)
