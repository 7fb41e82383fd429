import gzip
import json
from pathlib import Path
from typing import Any

from loguru import logger

from app.core.config import settings
from app.core.exceptions import CatalogUnavailableError
from app.models.catalog import CatalogEntry

STEAM_HEADER_IMAGE = "https://cdn.akamai.steamstatic.com/steam/apps/{appid}/header.jpg"
STEAM_STORE_URL = "https://store.steampowered.com/app/{appid}/"

INDIE_TAG = "Indie"
INDIE_SHOWCASE_LIMIT = 30


def _to_appid(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _price(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return max(0.0, float(value))


def _from_record(appid: int, raw: dict[str, Any]) -> CatalogEntry:
    """Normalize one raw store record (map form) into a CatalogEntry."""
    positive = raw.get("positive") or 0
    negative = raw.get("negative") or 0
    total = positive + negative
    tags = raw.get("tags") or {}
    return CatalogEntry(
        appid=appid,
        name=raw["name"],
        price=_price(raw.get("price")),
        # {"Indie": 22, "Casual": 21} -> ["Indie", "Casual"]
        tags=list(tags.keys()) if isinstance(tags, dict) else list(tags),
        genres=list(raw.get("genres") or []),
        categories=list(raw.get("categories") or []),
        review_ratio=positive / total if total > 0 else None,
        total_reviews=total,
        header_image=raw.get("header_image") or STEAM_HEADER_IMAGE.format(appid=appid),
        store_url=raw.get("store_url") or STEAM_STORE_URL.format(appid=appid),
    )


def _from_normalized(appid: int, raw: dict[str, Any]) -> CatalogEntry:
    return CatalogEntry(
        appid=appid,
        name=raw["name"],
        price=_price(raw.get("price")),
        tags=list(raw.get("tags") or []),
        genres=list(raw.get("genres") or []),
        categories=list(raw.get("categories") or []),
        review_ratio=raw.get("review_ratio"),
        total_reviews=int(raw.get("total_reviews") or 0),
        header_image=raw.get("header_image") or STEAM_HEADER_IMAGE.format(appid=appid),
        store_url=raw.get("store_url") or STEAM_STORE_URL.format(appid=appid),
    )


def normalize_dataset(raw: Any) -> list[CatalogEntry]:
    """
    Normalize a raw dataset into CatalogEntry records.

    Accepts either a pre-normalized array or the ``appid → record`` map produced
    by Steam store scrapers. Entries lacking a name or a numeric appid are dropped.
    """
    if not raw:
        return []

    if isinstance(raw, list):
        pairs = [(_to_appid(g.get("appid")), g, _from_normalized) for g in raw if isinstance(g, dict)]
    elif isinstance(raw, dict):
        pairs = [(_to_appid(appid), g, _from_record) for appid, g in raw.items() if isinstance(g, dict)]
    else:
        return []

    entries = []
    for appid, record, build in pairs:
        if appid is None or not record.get("name"):
            continue
        try:
            entries.append(build(appid, record))
        except ValueError as e:
            logger.debug(f"Skipping malformed catalog entry {appid}: {e}")
    return entries


class CatalogService:
    """Loads the game catalog once per process and serves it from memory."""

    def __init__(self, paths: list[str] | None = None):
        self.paths = paths or settings.CATALOG_PATHS
        self._entries: list[CatalogEntry] | None = None
        self._index: dict[int, CatalogEntry] = {}

    @staticmethod
    def _read(path: Path) -> Any:
        if path.suffix == ".gz":
            with gzip.open(path, "rt", encoding="utf-8") as fh:
                return json.load(fh)
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)

    def load(self) -> list[CatalogEntry]:
        if self._entries is not None:
            return self._entries

        for candidate in self.paths:
            path = Path(candidate)
            if not path.exists():
                continue
            try:
                raw = self._read(path)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Dataset load failed for {path}: {e}")
                continue
            self.set_entries(normalize_dataset(raw))
            logger.info(f"Catalog loaded from {path}, games = {len(self._entries)}")
            return self._entries

        raise CatalogUnavailableError("Catalog dataset not found", reason=f"Tried: {', '.join(self.paths)}")

    def set_entries(self, entries: list[CatalogEntry]) -> None:
        self._entries = entries
        self._index = {entry.appid: entry for entry in entries}

    def reload(self) -> list[CatalogEntry]:
        self._entries = None
        self._index = {}
        return self.load()

    def get_index(self) -> dict[int, CatalogEntry]:
        self.load()
        return self._index

    def get(self, appid: int) -> CatalogEntry | None:
        return self.get_index().get(appid)

    def indie_showcase(self, limit: int = INDIE_SHOWCASE_LIMIT) -> list[CatalogEntry]:
        """Indie tagged games that are well rated (or have too few reviews to judge), best rated first."""
        picks = [
            entry
            for entry in self.load()
            if INDIE_TAG in entry.tags and ((entry.review_ratio or 0) >= 0.5 or entry.total_reviews < 20)
        ]
        picks.sort(key=lambda entry: entry.review_ratio or 0, reverse=True)
        return picks[:limit]


catalog_service = CatalogService()
