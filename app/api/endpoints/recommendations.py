from fastapi import APIRouter, Depends, Request

from app.api.deps import enforce_rate_limit, get_engine, get_user_id
from app.models.recommendation import RecommendationRequest, RecommendationResult
from app.services.recommendation.engine import RecommendationEngine

router = APIRouter(tags=["recommendations"], dependencies=[Depends(enforce_rate_limit)])


@router.post("/recommendations", response_model=RecommendationResult)
async def create_recommendation(
    payload: RecommendationRequest,
    request: Request,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationResult:
    """
    Run one recommend / surprise / reroll action.

    Quota exhaustion and "nothing matched" are regular answers carrying a
    ``status``; only real failures turn into error responses.
    """
    if "user_id" not in payload.model_fields_set:
        payload.user_id = get_user_id(request)
    return await engine.recommend(payload)
