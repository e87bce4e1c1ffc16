"""
Prediction and engagement analytics routes.
"""

import logging

from fastapi import APIRouter, HTTPException, Path, Query

from behavior.models import PredictionType
from ..services import get_services
from .tracking import CLIENT_ID_PATTERN

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/clients/{client_id}/predictions")
async def get_predictions(
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
    min_confidence: float = Query(0, ge=0, le=100),
):
    """All predictions, or only those at or above `min_confidence`."""
    engine = get_services().get_context(client_id).prediction_engine
    if min_confidence > 0:
        predictions = engine.get_actionable_predictions(min_confidence)
    else:
        predictions = engine.get_all_predictions()
    return {"predictions": [p.to_dict() for p in predictions]}


@router.get("/clients/{client_id}/predictions/{prediction_type}")
async def get_prediction(
    prediction_type: str,
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
):
    try:
        kind = PredictionType(prediction_type)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown prediction type: {prediction_type}")
    engine = get_services().get_context(client_id).prediction_engine
    return engine.get_prediction(kind).to_dict()


@router.get("/clients/{client_id}/metrics")
async def engagement_metrics(client_id: str = Path(..., pattern=CLIENT_ID_PATTERN)):
    """Engagement roll-up across archived and current sessions."""
    return get_services().get_context(client_id).prediction_engine.get_engagement_metrics().to_dict()


@router.get("/clients/{client_id}/patterns")
async def behavior_patterns(
    client_id: str = Path(..., pattern=CLIENT_ID_PATTERN),
    limit: int = Query(10, ge=1, le=100),
    refresh: bool = Query(False, description="Re-run pattern analysis before answering"),
):
    """Strongest mined transitions."""
    miner = get_services().get_context(client_id).pattern_miner
    if refresh:
        miner.analyze_patterns()
    return {"patterns": [p.to_dict() for p in miner.top_patterns(limit)], "runs": miner.runs}
