"""
Drug Interaction API - pairwise interaction checks over the merged sources.

Endpoints:
- POST /api/v1/interactions/check - Check every pair of a drug list
- GET /api/v1/interactions/known - List curated interactions
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.schemas.interactions import (
    InteractionCheckRequest,
    InteractionCheckResponse,
    KnownInteractionsResponse,
)
from app.services.interactions.engine import InteractionEngine, get_engine
from app.services.interactions.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check", response_model=InteractionCheckResponse)
async def check_interactions(
    request: InteractionCheckRequest,
    engine: InteractionEngine = Depends(get_engine),
):
    """
    Check all pairwise combinations of 2..MAX_DRUGS drugs.

    Curated and external findings are merged into one record per pair and
    also reported split by provenance (interactions.stored / .external).
    Sources that failed are listed in unavailableSources; they never fail
    the request.
    """
    try:
        return await engine.check_interactions(request.drugs, request.patient_profile)
    except ValidationError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error checking interactions: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail="Failed to check drug interactions"
        )


@router.get("/known", response_model=KnownInteractionsResponse)
async def get_known_interactions(
    drug: Optional[str] = None,
    severity: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    engine: InteractionEngine = Depends(get_engine),
):
    """
    List curated interactions, strongest first.

    Optional filters:
    - drug: RXCUI or name of a drug involved in the interaction
    - severity: contraindicated/major/moderate/minor
    - limit: maximum number of interactions returned
    """
    return engine.known_interactions(drug=drug, severity=severity, limit=limit)
