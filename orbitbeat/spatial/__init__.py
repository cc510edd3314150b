"""Spatial rotation subpackage."""

from orbitbeat.spatial.engine import SpatialRotationEngine
from orbitbeat.spatial.graph import DestinationNode, SourceInUseError, SourceNode
from orbitbeat.spatial.models import CENTER_FRONT, Position, RotationState, SpatializationConfig
from orbitbeat.spatial.scheduler import AsyncioFrameScheduler, FrameScheduler

__all__ = [
    "SpatialRotationEngine",
    "DestinationNode",
    "SourceInUseError",
    "SourceNode",
    "CENTER_FRONT",
    "Position",
    "RotationState",
    "SpatializationConfig",
    "AsyncioFrameScheduler",
    "FrameScheduler",
]
