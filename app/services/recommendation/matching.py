import re

from app.core.constants import RESULT_SIZE
from app.core.exceptions import ReconciliationEmptyError
from app.models.catalog import ScoredCandidate, format_price
from app.models.ranking import IdPick, TitlePick
from app.models.recommendation import RecommendedItem

_TRADEMARKS = re.compile("[™®]")
_NON_ALNUM = re.compile(r"[^a-z0-9+]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str | None) -> str:
    """Lowercase, drop ™/®, collapse everything but [a-z0-9+] into single spaces."""
    text = _TRADEMARKS.sub("", str(title or "").lower())
    return _NON_ALNUM.sub(" ", text).strip()


def _compact(norm: str) -> str:
    return _WHITESPACE.sub("", norm)


def to_recommended(candidate: ScoredCandidate, reason: str = "", compatibility: int | None = None) -> RecommendedItem:
    data = candidate.model_dump()
    if compatibility is not None:
        data["compatibility"] = compatibility
    return RecommendedItem(**data, reason=reason, price_label=format_price(candidate.price or 0))


def match_title(title: str, pool: list[ScoredCandidate]) -> ScoredCandidate | None:
    """
    Map a free-text title onto a pool entry.

    Preference: exact normalized equality, then containment in either
    direction, then whitespace-insensitive equality.
    """
    norm = normalize_title(title)
    if not norm:
        return None

    catalog = [(normalize_title(c.name), c) for c in pool]
    for c_norm, candidate in catalog:
        if c_norm and c_norm == norm:
            return candidate
    for c_norm, candidate in catalog:
        if c_norm and (norm in c_norm or c_norm in norm):
            return candidate
    compact = _compact(norm)
    for c_norm, candidate in catalog:
        if c_norm and _compact(c_norm) == compact:
            return candidate
    return None


def reconcile_title_picks(picks: list[TitlePick], pool: list[ScoredCandidate]) -> list[RecommendedItem]:
    """Title-based picks → pool entries. Unmatched picks are dropped silently."""
    items: list[RecommendedItem] = []
    seen: set[int] = set()
    for pick in picks:
        candidate = match_title(pick.title, pool)
        if candidate is None or candidate.appid in seen:
            continue
        seen.add(candidate.appid)
        items.append(to_recommended(candidate, reason=pick.reason))
        if len(items) == RESULT_SIZE:
            break

    if not items:
        raise ReconciliationEmptyError("No ranked title matches a known game")
    return items


def reconcile_id_picks(picks: list[IdPick], pool: list[ScoredCandidate]) -> list[RecommendedItem]:
    """Identifier-based picks → pool entries, keeping only submitted appids."""
    by_id = {c.appid: c for c in pool}
    items: list[RecommendedItem] = []
    seen: set[int] = set()
    for pick in picks:
        candidate = by_id.get(pick.appid)
        if candidate is None or pick.appid in seen:
            continue
        seen.add(pick.appid)
        items.append(to_recommended(candidate, compatibility=max(0, min(100, pick.compatibility))))
        if len(items) == RESULT_SIZE:
            break

    if not items:
        raise ReconciliationEmptyError("No ranked appid belongs to the submitted candidates")
    return items
