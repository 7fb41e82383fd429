from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from app.api.deps import get_client_ip, get_rate_limiter
from app.services.rate_limit import RateLimiter, RateLimitStatus

router = APIRouter(prefix="/ratelimit", tags=["ratelimit"])


class RateLimitCheckRequest(BaseModel):
    userId: str = Field(default="", description="Opaque client generated identifier")


@router.post("/check", response_model=RateLimitStatus)
async def check_rate_limit(
    request: Request,
    payload: RateLimitCheckRequest | None = None,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RateLimitStatus:
    """Report the caller's remaining budget without consuming any of it."""
    user_id = payload.userId if payload else ""
    return limiter.check(user_id, get_client_ip(request))
