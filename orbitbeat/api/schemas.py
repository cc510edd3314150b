"""Pydantic request/response models for API."""

from typing import Literal

from pydantic import BaseModel

from orbitbeat.analysis.models import ANALYSIS_CONFIDENCE


class TempoResponse(BaseModel):
    bpm: int
    confidence: float
    optimal_speed: float
    is_fallback: bool = False


class AnalysisResponse(BaseModel):
    tempo: TempoResponse
    rhythmic_multipliers: list[float]
    multiplier: float = 1.0  # snapped to the rhythmic grid
    speed: float  # optimal_speed * multiplier


class MultipliersResponse(BaseModel):
    bpm: float | None = None
    multipliers: list[float]


class ClosestResponse(BaseModel):
    value: float
    bpm: float | None = None
    closest: float


# WebSocket message types

class ConfigMessage(BaseModel):
    type: Literal["config"] = "config"
    speed: float | None = None
    intensity: float | None = None
    radius: float | None = None


class TempoMessage(BaseModel):
    type: Literal["tempo"] = "tempo"
    bpm: int
    confidence: float = ANALYSIS_CONFIDENCE
    optimal_speed: float | None = None
    mode: Literal["manual", "automatic"] = "automatic"
    manual_speed: float = 2.5
    multiplier: float = 1.0


class VolumeMessage(BaseModel):
    type: Literal["volume"] = "volume"
    value: float


class PositionMessage(BaseModel):
    type: Literal["position"] = "position"
    x: float
    y: float
    z: float
    angle: float


class SnapshotMessage(BaseModel):
    type: Literal["snapshot"] = "snapshot"
    data: list[int]


class ConfigStateMessage(BaseModel):
    type: Literal["config"] = "config"
    speed: float
    intensity: float
    radius: float
