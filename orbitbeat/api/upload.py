"""File upload endpoint for tempo analysis."""

import logging
import os
import tempfile

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from orbitbeat.analysis.rhythm import candidate_ratios, snap_multiplier
from orbitbeat.analysis.tempo import TempoEstimator
from orbitbeat.api.schemas import AnalysisResponse, TempoResponse
from orbitbeat.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aac", ".wma"}


def _extension(filename: str | None) -> str:
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(
    file: UploadFile = File(...),
    multiplier: float = Query(1.0, gt=0),
):
    """Estimate tempo of an uploaded file and the rotation speed it implies.

    Undecodable audio still returns the fallback estimate.
    """
    suffix = _extension(file.filename)
    if suffix and suffix not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"Unsupported format. Use: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    # Write to temp file (librosa needs a path for compressed formats)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        estimate = await TempoEstimator().analyze_file_async(tmp_path)
    except Exception as e:
        logger.error(f"Upload analysis failed: {e}")
        raise HTTPException(500, "Analysis failed")
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass

    snapped = snap_multiplier(multiplier, estimate.bpm)
    return AnalysisResponse(
        tempo=TempoResponse(
            bpm=estimate.bpm,
            confidence=estimate.confidence,
            optimal_speed=estimate.optimal_speed,
            is_fallback=estimate.is_fallback,
        ),
        rhythmic_multipliers=candidate_ratios(estimate.bpm),
        multiplier=snapped,
        speed=estimate.optimal_speed * snapped,
    )
