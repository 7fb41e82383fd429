from pydantic import BaseModel, ConfigDict, Field, field_validator


class LlmCandidate(BaseModel):
    """Compact shortlist row sent to the ranking model."""

    appid: int
    name: str
    tags: list[str] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    price: float = 0.0
    review_ratio: float | None = None
    total_reviews: int = 0
    compatibility_hint: int | None = None


class PlaytimeExample(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    appid: int | None = None
    name: str = "Unknown game"
    hours: int = 0
    tags: list[str] = Field(default_factory=list)
    achievement_ratio: int | None = None


class LlmUserProfile(BaseModel):
    """Condensed player profile: dominant tags plus most played examples."""

    model_config = ConfigDict(extra="ignore")

    playtime_top: list[PlaytimeExample] = Field(default_factory=list)
    fav_tags: list[str] = Field(default_factory=list)
    filters: dict | None = None
    budget_max: float | None = None


class TitlePick(BaseModel):
    title: str
    reason: str = ""


class IdPick(BaseModel):
    appid: int
    compatibility: int = 0

    @field_validator("compatibility", mode="before")
    @classmethod
    def _clamp(cls, value) -> int:
        try:
            return max(0, min(100, int(round(float(value)))))
        except (TypeError, ValueError):
            return 0
