"""Rhythmic multiplier queries."""

from fastapi import APIRouter, Query

from orbitbeat.analysis.rhythm import candidate_ratios, closest_ratio
from orbitbeat.api.schemas import ClosestResponse, MultipliersResponse

router = APIRouter()


@router.get("/rhythm/multipliers", response_model=MultipliersResponse)
async def multipliers(bpm: float | None = None):
    return MultipliersResponse(bpm=bpm, multipliers=candidate_ratios(bpm))


@router.get("/rhythm/closest", response_model=ClosestResponse)
async def closest(value: float = Query(...), bpm: float | None = None):
    return ClosestResponse(value=value, bpm=bpm, closest=closest_ratio(value, bpm))
