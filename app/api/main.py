from fastapi import APIRouter

from .endpoints.catalog import router as catalog_router
from .endpoints.health import router as health_router
from .endpoints.history import router as history_router
from .endpoints.llm import router as llm_router
from .endpoints.queue import router as queue_router
from .endpoints.ratelimit import router as ratelimit_router
from .endpoints.recommendations import router as recommendations_router
from .endpoints.steam import router as steam_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Steam AI Reco API is running"}


api_router.include_router(health_router)
api_router.include_router(queue_router)
api_router.include_router(ratelimit_router)
api_router.include_router(catalog_router)
api_router.include_router(steam_router)
api_router.include_router(llm_router)
api_router.include_router(recommendations_router)
api_router.include_router(history_router)
