from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from app.api.deps import get_history_service, get_user_id
from app.models.recommendation import Feedback, HistoryEntry
from app.services.history import HistoryService

router = APIRouter(tags=["history"])


class FeedbackRequest(BaseModel):
    userId: str | None = None
    recommendationId: str
    appid: int
    value: Literal["like", "dislike"]


@router.get("/history", response_model=list[HistoryEntry])
async def get_history(
    request: Request,
    userId: str | None = Query(default=None),
    history: HistoryService = Depends(get_history_service),
) -> list[HistoryEntry]:
    return await history.get_history(userId or get_user_id(request))


@router.post("/feedback", response_model=HistoryEntry)
async def save_feedback(
    payload: FeedbackRequest,
    request: Request,
    history: HistoryService = Depends(get_history_service),
) -> HistoryEntry:
    user_id = payload.userId or get_user_id(request)
    feedback = Feedback(appid=payload.appid, value=payload.value)
    return await history.save_feedback(user_id, payload.recommendationId, feedback)
