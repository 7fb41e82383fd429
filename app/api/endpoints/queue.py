from fastapi import APIRouter

from app.services.rate_limit import queue_estimator

router = APIRouter(tags=["queue"])


@router.get("/queue", summary="Soft estimate of concurrent users")
async def get_queue() -> dict[str, int]:
    return {"waiting": queue_estimator.waiting()}
