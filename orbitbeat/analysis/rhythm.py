"""Rhythmic speed multipliers and speed resolution for the two control modes."""

from enum import Enum

from orbitbeat.analysis.models import TempoEstimate

MIN_RATIO = 0.25
MAX_RATIO = 3.0

RHYTHMIC_RATIOS = (
    1 / 4,
    1 / 2,
    2 / 3,
    3 / 4,
    1,
    4 / 3,
    3 / 2,
    2,
    5 / 2,
    3,
)

# Smaller differences are left unsnapped
SNAP_TOLERANCE = 0.01

DEFAULT_MANUAL_SPEED = 2.5
DEFAULT_MULTIPLIER = 1.0


class RotationMode(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


def candidate_ratios(bpm: float | None = None) -> list[float]:
    """Musical ratios in [0.25, 3.0], ascending.

    ``bpm`` is accepted for interface symmetry; the set does not depend on it.
    """
    return sorted(float(r) for r in RHYTHMIC_RATIOS if MIN_RATIO <= r <= MAX_RATIO)


def closest_ratio(value: float, bpm: float | None = None) -> float:
    """Nearest candidate ratio to ``value``; ties go to the lower ratio."""
    ratios = candidate_ratios(bpm)
    assert ratios, "rhythmic ratio set is empty"

    closest = ratios[0]
    min_diff = abs(value - closest)
    for ratio in ratios:
        diff = abs(value - ratio)
        if diff < min_diff:
            min_diff = diff
            closest = ratio
    return closest


def snap_multiplier(value: float, bpm: float | None = None) -> float:
    """Snap a user multiplier to the rhythmic grid unless already on it."""
    closest = closest_ratio(value, bpm)
    if abs(closest - value) > SNAP_TOLERANCE:
        return closest
    return value


def resolve_speed(
    mode: RotationMode | str,
    manual_speed: float = DEFAULT_MANUAL_SPEED,
    estimate: TempoEstimate | None = None,
    multiplier: float = DEFAULT_MULTIPLIER,
) -> float:
    """Rotation speed for the active mode.

    Automatic mode scales the estimate's optimal speed by the multiplier
    and falls back to the manual speed until an estimate exists.
    """
    mode = RotationMode(mode)
    if mode is RotationMode.AUTOMATIC and estimate is not None:
        return estimate.optimal_speed * multiplier
    return manual_speed
