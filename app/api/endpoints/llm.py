from typing import Any

from cachetools import TTLCache
from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, Field

from app.api.deps import enforce_rate_limit, get_ranking_service
from app.core.config import settings
from app.core.exceptions import InputValidationError
from app.core.security import stable_digest
from app.models.ranking import LlmCandidate, LlmUserProfile
from app.services.llm.ranker import PROMPT_MAX_GAMES, RankingService

router = APIRouter(prefix="/llm", tags=["llm"], dependencies=[Depends(enforce_rate_limit)])

# Process-local, lost on restart
explain_cache: TTLCache = TTLCache(maxsize=1024, ttl=settings.EXPLAIN_CACHE_TTL_SECONDS)


class ExplainRequest(BaseModel):
    summary: str = ""
    picks: list[dict[str, Any]] | None = None


class RankRequest(BaseModel):
    userProfile: LlmUserProfile | None = None
    mode: str = "standard"
    filtersSummary: str = ""
    bannedTitles: list[str] = Field(default_factory=list)
    isSurprise: bool = False
    # Identifier based variant
    profile: LlmUserProfile | None = None
    candidates: list[LlmCandidate] | None = None


@router.post("/explain")
async def explain(payload: ExplainRequest, ranking: RankingService = Depends(get_ranking_service)) -> dict:
    if not payload.summary or payload.picks is None:
        raise InputValidationError("Invalid payload", reason="summary and picks are required")

    key = stable_digest({"summary": payload.summary, "picks": payload.picks})
    cached = explain_cache.get(key)
    if cached is not None:
        logger.debug("[llm/explain] cache hit")
        return {"explanation": cached, "cached": True}

    explanation = await ranking.explain(payload.summary, payload.picks)
    explain_cache[key] = explanation
    return {"explanation": explanation, "cached": False}


@router.post("/rank")
async def rank(payload: RankRequest, ranking: RankingService = Depends(get_ranking_service)) -> dict:
    if payload.candidates:
        profile = payload.profile or payload.userProfile or LlmUserProfile()
        picks = await ranking.rank_candidates(profile, payload.candidates)
        return {"picks": [p.model_dump() for p in picks]}

    top_games = payload.userProfile.playtime_top[:PROMPT_MAX_GAMES] if payload.userProfile else []
    if not top_games:
        raise InputValidationError("Invalid payload", reason="userProfile.playtime_top is empty")

    logger.info(
        f"[llm/rank] top games = {len(top_games)}, mode = {payload.mode}, banned = {len(payload.bannedTitles)}"
    )
    picks = await ranking.rank_titles(
        top_games,
        filters_summary=payload.filtersSummary,
        banned_titles=payload.bannedTitles,
        surprise=payload.mode == "surprise" or payload.isSurprise,
    )
    return {"picks": [p.model_dump() for p in picks]}
