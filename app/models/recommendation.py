from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.catalog import ScoredCandidate
from app.models.filters import FilterConfig


class RecommendedItem(ScoredCandidate):
    reason: str = ""
    price_label: str = ""


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    steamid: str = Field(..., description="SteamID64 of the player")
    user_id: str = Field(default="anon", alias="userId", description="Opaque client generated identifier")
    filters: FilterConfig = Field(default_factory=FilterConfig)
    price_max: float | None = Field(default=None, ge=0, alias="priceMax")
    surprise: bool = False
    reroll: bool = False

    @property
    def mode(self) -> str:
        return "surprise" if self.surprise else "standard"


class RecommendationResult(BaseModel):
    status: Literal["ok", "empty", "quota_exceeded"] = "ok"
    items: list[RecommendedItem] = Field(default_factory=list)
    cached: bool = False
    source: Literal["local", "ranker", "cache"] | None = None
    rerolls_remaining: int | None = None
    message: str = ""


class CachedRecommendation(BaseModel):
    key: str
    items: list[RecommendedItem] = Field(default_factory=list, max_length=3)
    expires_at: float = Field(..., description="Epoch milliseconds")


class RerollUsage(BaseModel):
    key: str
    date: str
    count: int = Field(default=0, ge=0)


class Feedback(BaseModel):
    appid: int
    value: Literal["like", "dislike"]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HistoryEntry(BaseModel):
    id: str
    steamid: str
    primary: RecommendedItem | None = None
    alt1: RecommendedItem | None = None
    alt2: RecommendedItem | None = None
    filters: FilterConfig = Field(default_factory=FilterConfig)
    price_max: float | None = None
    surprise: bool = False
    source: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    feedback: Feedback | None = None
