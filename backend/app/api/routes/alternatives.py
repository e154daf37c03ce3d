"""
Drug Alternatives API - scored therapeutic alternatives and interaction rows.

Endpoints:
- POST /api/v1/alternatives/find-alternatives - Alternatives for a regimen
- GET /api/v1/alternatives/interactions/{drug_name} - Interaction matrix row
- POST /api/v1/alternatives/clear-cache - Invalidate cached lookups
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.interactions import (
    AlternativesResponse,
    ClearCacheResponse,
    FindAlternativesRequest,
    InteractionRowResponse,
)
from app.services.interactions.engine import InteractionEngine, get_engine
from app.services.interactions.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/find-alternatives", response_model=AlternativesResponse)
async def find_alternatives(
    request: FindAlternativesRequest,
    engine: InteractionEngine = Depends(get_engine),
):
    """
    Suggest class-peer alternatives for every drug of the regimen.

    Candidates are scored for safety against the rest of the regimen and
    the patient's phenotypes and clinical factors (age, allergies, renal and
    hepatic function), and for efficacy from the equivalence table.
    """
    try:
        drugs = [drug.to_drug_ref() for drug in request.drugs]
        return await engine.find_alternatives(drugs, request.patient_profile, request.patient_factors())
    except ValidationError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error finding alternatives: {str(e)}")
        raise HTTPException(
            status_code=500,
            detail="Failed to find alternatives"
        )


@router.get("/interactions/{drug_name}", response_model=InteractionRowResponse)
async def get_drug_interactions(
    drug_name: str,
    engine: InteractionEngine = Depends(get_engine),
):
    """Known interactions of one drug, each with a numeric riskScore."""
    return engine.interaction_row(drug_name)


@router.post("/clear-cache", response_model=ClearCacheResponse)
async def clear_cache(engine: InteractionEngine = Depends(get_engine)):
    """Invalidate all cached lookups. Always succeeds."""
    return engine.clear_cache()
