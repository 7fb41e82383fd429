from fastapi import Depends, Request
from loguru import logger

from app.core.config import settings
from app.core.constants import DEFAULT_USER_ID, UNKNOWN_IP
from app.core.exceptions import RateLimitedError
from app.core.security import redact_id
from app.services.catalog import CatalogService, catalog_service
from app.services.history import HistoryService, history_service
from app.services.llm.ranker import RankingService
from app.services.rate_limit import RateLimiter, rate_limiter
from app.services.recommendation.engine import RecommendationEngine
from app.services.steam.service import SteamLibraryService, library_service

_ranking_service: RankingService | None = None


def get_client_ip(request: Request) -> str:
    """Network origin: CF-Connecting-IP, then the first X-Forwarded-For hop, then the socket peer."""
    ip = request.headers.get("cf-connecting-ip")
    if ip:
        return ip.strip()
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def get_user_id(request: Request) -> str:
    return (request.headers.get("x-user-id") or "").strip() or DEFAULT_USER_ID


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def enforce_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    user_id = get_user_id(request)
    ip = get_client_ip(request)
    status = limiter.hit(user_id, ip)
    if status.limited:
        logger.warning(f"Rate limited {redact_id(user_id)} from {ip}")
        raise RateLimitedError("Too many requests", reason="Rate limit exceeded, try again later")


def get_catalog_service() -> CatalogService:
    return catalog_service


def get_library_service() -> SteamLibraryService:
    return library_service


def get_history_service() -> HistoryService:
    return history_service


def get_ranking_service() -> RankingService:
    global _ranking_service
    if _ranking_service is None:
        _ranking_service = RankingService()
    return _ranking_service


def get_engine(
    library: SteamLibraryService = Depends(get_library_service),
    history: HistoryService = Depends(get_history_service),
) -> RecommendationEngine:
    ranking = get_ranking_service() if settings.ranking_configured else None
    return RecommendationEngine(library=library, ranking=ranking, history=history)


async def close_ranking_service() -> None:
    global _ranking_service
    if _ranking_service is not None:
        await _ranking_service.close()
        _ranking_service = None
