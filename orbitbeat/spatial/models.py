"""Data models for the spatial rotation engine."""

import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from orbitbeat.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """Source position relative to a listener at the origin facing -z."""
    x: float
    y: float
    z: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


# Directly ahead of the listener
CENTER_FRONT = Position(0.0, 0.0, -1.0)
# Right side, where the panner sits before the first tick
START_POSITION = Position(3.0, 0.0, 0.0)


@dataclass(frozen=True)
class SpatializationConfig:
    speed: float = settings.default_speed  # rotations-per-second-like rate
    intensity: float = settings.default_intensity
    radius: float = settings.default_radius

    def merged(self, changes: Mapping[str, Any]) -> "SpatializationConfig":
        """Return a copy with the recognised, valid fields of ``changes`` applied.

        Unknown fields and non-numeric or non-finite values are dropped;
        numeric values are clamped to the configured bounds.
        """
        known = {f.name for f in fields(self)}
        accepted = {}
        for name, value in changes.items():
            if name not in known:
                logger.debug(f"Ignoring unknown config field {name!r}")
                continue
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning(f"Ignoring non-numeric {name}={value!r}")
                continue
            if not math.isfinite(value):
                logger.warning(f"Ignoring non-finite {name}={value!r}")
                continue
            accepted[name] = clamp_field(name, float(value))
        return replace(self, **accepted)


_BOUNDS = {
    "speed": ("min_speed", "max_speed"),
    "intensity": ("min_intensity", "max_intensity"),
    "radius": ("min_radius", "max_radius"),
}


def clamp_field(name: str, value: float) -> float:
    """Clamp a config value to its ``settings`` bounds."""
    low_attr, high_attr = _BOUNDS[name]
    low, high = getattr(settings, low_attr), getattr(settings, high_attr)
    clamped = max(low, min(high, value))
    if clamped != value:
        logger.debug(f"Clamped {name} {value} -> {clamped}")
    return clamped


@dataclass
class RotationState:
    angle: float = 0.0  # radians, unbounded
    is_active: bool = False
