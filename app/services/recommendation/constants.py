from typing import Final

from app.models.filters import PlayMode, QuickTag

# Composite score weights
SCORE_WEIGHT_TAGS: Final[float] = 0.45
SCORE_WEIGHT_GENRES: Final[float] = 0.25
SCORE_WEIGHT_CATEGORIES: Final[float] = 0.10
SCORE_WEIGHT_PRICE: Final[float] = 0.10
SCORE_WEIGHT_REVIEW: Final[float] = 0.10

# Novelty (max 30% influence in surprise mode)
NOVELTY_WEIGHT_STANDARD: Final[float] = 0.2
NOVELTY_WEIGHT_SURPRISE: Final[float] = 0.3
NOVELTY_DAMPING_STANDARD: Final[float] = 0.6
NOVELTY_CAP: Final[float] = 0.3

# Review quality
DEFAULT_REVIEW_RATIO: Final[float] = 0.6  # scoring only, the quality gate uses 0
QUALITY_GATES: Final[list[tuple[int, float]]] = [
    (50, 0.70),  # >= 50 reviews need >= 70% positive
    (10, 0.55),  # >= 10 reviews need >= 55% positive
]

# Exclusions
EXCLUDE_TOP_PLAYED: Final[int] = 10

# Normalization pool and candidate caps
NORMALIZATION_POOL: Final[int] = 100
DIVERSIFY_POOL: Final[int] = 100
SHORTLIST_LIMIT: Final[int] = 200
SHORTLIST_MAX_TAGS: Final[int] = 6
SHORTLIST_MAX_GENRES: Final[int] = 4

# Diversification: max shared tag ratio between two picks
MAX_PICK_SIMILARITY: Final[float] = 0.6
SURPRISE_MAX_OVERLAP: Final[float] = 0.3

# Closed filter tables
QUICK_TAG_LABELS: Final[dict[QuickTag, str]] = {
    QuickTag.FPS: "FPS",
    QuickTag.F2P: "Free to Play",
    QuickTag.COOP: "Co-op",
    QuickTag.HORROR: "Horror",
    QuickTag.ROGUELITE: "Rogue-like",
    QuickTag.INDIE: "Indie",
    QuickTag.ADVENTURE: "Adventure",
    QuickTag.RPG: "RPG",
    QuickTag.SIMULATOR: "Simulation",
}

# Horror family: tags and derivatives / synonyms, matched as substrings
HORROR_KEYWORDS: Final[tuple[str, ...]] = (
    "horror",
    "horreur",
    "psychological horror",
    "survival horror",
    "gore",
    "violent",
    "lovecraftian",
    "supernatural",
    "zombies",
    "zombie",
    "vampire",
    "vampires",
    "demonic",
    "demon",
    "ghost",
    "monsters",
    "monster",
    "cthulhu",
    "dark fantasy",
    "post-apocalyptic",
)

PLAY_MODE_CATEGORIES: Final[dict[PlayMode, str]] = {
    PlayMode.ONLINE: "Online Co-op",
    PlayMode.LOCAL: "Local Co-op",
    PlayMode.SOLO: "Single-player",
}

QUICK_BUDGET_LIMITS: Final[dict[str, float]] = {
    "free": 0.0,
    "10": 10.0,
    "20": 20.0,
}
