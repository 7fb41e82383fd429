from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class QuickTag(str, Enum):
    FPS = "fps"
    F2P = "f2p"
    COOP = "coop"
    HORROR = "horror"
    ROGUELITE = "roguelite"
    INDIE = "indie"
    ADVENTURE = "adventure"
    RPG = "rpg"
    SIMULATOR = "simulator"


class PlayMode(str, Enum):
    ONLINE = "online"
    LOCAL = "local"
    SOLO = "solo"


class Budget(BaseModel):
    """Either a quick tier (free, <=10, <=20) or a custom maximum price."""

    kind: Literal["quick", "custom"] = "quick"
    tier: Literal["free", "10", "20"] | None = None
    max: float | None = Field(default=None, ge=0)

    def descriptor(self) -> str:
        if self.kind == "quick":
            return f"quick:{self.tier or 'any'}"
        return f"custom:{self.max if self.max is not None else 'ceiling'}"


class FilterConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quick: list[QuickTag] = Field(default_factory=list)
    modes: list[PlayMode] = Field(default_factory=list)
    budget: Budget | None = None

    def normalized(self) -> dict:
        """Order independent description used for cache keys."""
        return {
            "quick": sorted(tag.value for tag in set(self.quick)),
            "modes": sorted(mode.value for mode in set(self.modes)),
            "budget": self.budget.descriptor() if self.budget else "none",
        }
