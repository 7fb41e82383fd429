import pytest
from fakeredis import FakeAsyncRedis, FakeServer

from app.core.cache import RedisCache
from app.models.catalog import CatalogEntry, CompletionSummary, OwnedItem, ScoredCandidate


class FakeClock:
    """Manually advanced wall clock (seconds since epoch)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubChatClient:
    """Chat client double that always answers with the same text."""

    def __init__(self, reply: str):
        self.reply = reply
        self.calls: list[dict] = []

    async def chat(self, messages, max_tokens=None, temperature=None):
        self.calls.append({"messages": messages, "max_tokens": max_tokens})
        return self.reply

    async def close(self):
        pass


def make_game(appid: int, name: str | None = None, **kwargs) -> CatalogEntry:
    data = {
        "price": 10.0,
        "tags": ["Indie"],
        "genres": ["Action"],
        "categories": ["Single-player"],
        "review_ratio": 0.9,
        "total_reviews": 1000,
    }
    data.update(kwargs)
    return CatalogEntry(appid=appid, name=name or f"Game {appid}", **data)


def make_scored(appid: int, tags: list[str], overlap: float = 0.5, score: float = 1.0, **kwargs) -> ScoredCandidate:
    return ScoredCandidate(
        appid=appid,
        name=kwargs.pop("name", f"Game {appid}"),
        tags=tags,
        overlap=overlap,
        score=score,
        compatibility=kwargs.pop("compatibility", 50),
        **kwargs,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def redis_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def redis_client(redis_server):
    return FakeAsyncRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def store(redis_client) -> RedisCache:
    return RedisCache(client=redis_client)


@pytest.fixture
def catalog() -> list[CatalogEntry]:
    """Small catalog: two owned games (1, 2) and a handful of candidates."""
    return [
        make_game(1, "Hollow Knight", tags=["Metroidvania", "Platformer", "Indie"], genres=["Action"], price=14.79),
        make_game(2, "Counter-Strike 2", tags=["FPS", "Shooter", "Multiplayer"], genres=["Action"], price=0.0),
        make_game(10, "Dead Cells", tags=["Metroidvania", "Roguelite", "Indie"], genres=["Action"], price=24.99),
        make_game(11, "Ori and the Blind Forest", tags=["Metroidvania", "Platformer"], genres=["Adventure"]),
        make_game(12, "Valorant Clone", tags=["FPS", "Shooter"], genres=["Action"], price=0.0),
        make_game(13, "Stardew Valley", tags=["Farming Sim", "Relaxing"], genres=["Simulation"], price=13.99),
        make_game(14, "Shovelware", tags=["Metroidvania"], review_ratio=0.6, total_reviews=60),
        make_game(15, "Pricey Epic", tags=["Metroidvania", "Platformer"], genres=["Action"], price=70.0),
    ]


@pytest.fixture
def owned() -> list[OwnedItem]:
    return [
        OwnedItem(appid=1, playtime_forever=6000, name="Hollow Knight"),
        OwnedItem(appid=2, playtime_forever=3000, name="Counter-Strike 2"),
    ]


@pytest.fixture
def completions() -> dict[int, CompletionSummary]:
    return {1: CompletionSummary(total=10, unlocked=8, ratio=80)}
