from fastapi import APIRouter
from app.api.routes import interactions, alternatives

api_router = APIRouter()

api_router.include_router(interactions.router, prefix="/interactions", tags=["Interactions"])
api_router.include_router(alternatives.router, prefix="/alternatives", tags=["Alternatives"])
