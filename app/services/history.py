import uuid

from loguru import logger
from pydantic import ValidationError

from app.core.cache import RedisCache, cache
from app.core.config import settings
from app.core.constants import HISTORY_KEY
from app.core.exceptions import NotFoundError
from app.core.security import redact_id
from app.models.recommendation import (
    Feedback,
    HistoryEntry,
    RecommendationRequest,
    RecommendedItem,
)


class HistoryService:
    """
    Per-user log of delivered recommendations, newest first, with one
    like / dislike per entry.
    """

    def __init__(self, store: RedisCache | None = None, limit: int | None = None):
        self.store = store or cache
        self.limit = limit or settings.HISTORY_LIMIT

    @staticmethod
    def _key(user_id: str) -> str:
        return HISTORY_KEY.format(user_id=user_id)

    async def save(
        self, request: RecommendationRequest, items: list[RecommendedItem], source: str | None
    ) -> HistoryEntry:
        slots = list(items[:3]) + [None] * (3 - min(3, len(items)))
        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            steamid=request.steamid,
            primary=slots[0],
            alt1=slots[1],
            alt2=slots[2],
            filters=request.filters,
            price_max=request.price_max,
            surprise=request.surprise,
            source=source,
        )
        await self.store.push_capped(self._key(request.user_id), entry.model_dump(mode="json"), self.limit)
        logger.debug(f"[{redact_id(request.user_id)}] History entry {entry.id} saved")
        return entry

    async def get_history(self, user_id: str) -> list[HistoryEntry]:
        entries = []
        for raw in await self.store.get_list(self._key(user_id)):
            try:
                entries.append(HistoryEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed history entry for {redact_id(user_id)}: {e}")
        return entries

    async def save_feedback(self, user_id: str, recommendation_id: str, feedback: Feedback) -> HistoryEntry:
        """Attach (or replace) the feedback of one history entry."""

        def attach(raw) -> dict | None:
            if not isinstance(raw, dict) or raw.get("id") != recommendation_id:
                return None
            entry = HistoryEntry.model_validate(raw)
            entry.feedback = feedback
            return entry.model_dump(mode="json")

        stored = await self.store.update_list_item(self._key(user_id), attach)
        if stored is None:
            raise NotFoundError("Recommendation not found", reason=f"Unknown recommendation id {recommendation_id}")

        logger.info(f"[{redact_id(user_id)}] Feedback {feedback.value} on {feedback.appid}")
        return HistoryEntry.model_validate(stored)


history_service = HistoryService()
