from fastapi import APIRouter

from sparkforge.api.routes import artifacts, health, sparks, stories

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(sparks.router, prefix="/sparks", tags=["sparks"])
api_router.include_router(stories.router, prefix="/stories", tags=["stories"])
api_router.include_router(artifacts.router, prefix="/artifacts", tags=["artifacts"])
