from app.models.catalog import CompletionSummary, OwnedItem
from app.models.filters import Budget, FilterConfig, PlayMode, QuickTag
from app.services.recommendation.shortlist import build_user_profile, summarize_filters, to_llm_candidates
from tests.conftest import make_game, make_scored


class TestToLlmCandidates:
    def test_projection_truncates_lists(self):
        candidate = make_scored(
            7,
            [f"T{i}" for i in range(10)],
            genres=["G1", "G2", "G3", "G4", "G5"],
            price=4.99,
            review_ratio=0.91,
            total_reviews=1234,
            compatibility=87,
        )
        [row] = to_llm_candidates([candidate])

        assert row.appid == 7
        assert row.tags == [f"T{i}" for i in range(6)]
        assert row.genres == ["G1", "G2", "G3", "G4"]
        assert row.price == 4.99
        assert row.compatibility_hint == 87

    def test_limit(self):
        pool = [make_scored(i, ["A"]) for i in range(1, 251)]
        assert len(to_llm_candidates(pool)) == 200
        assert len(to_llm_candidates(pool, limit=5)) == 5


class TestBuildUserProfile:
    def test_examples_and_tags(self):
        index = {
            1: make_game(1, "Hollow Knight", tags=["Metroidvania", "Indie"]),
            2: make_game(2, "Celeste", tags=["Platformer"]),
        }
        owned = [
            OwnedItem(appid=1, playtime_forever=90),
            OwnedItem(appid=2, playtime_forever=30),
            OwnedItem(appid=3, playtime_forever=20, name="Delisted Game"),
            OwnedItem(appid=4, playtime_forever=0),
        ]
        completions = {1: CompletionSummary(total=4, unlocked=3, ratio=75)}

        profile = build_user_profile(index, owned, completions, FilterConfig(), 30.0)

        assert [e.name for e in profile.playtime_top] == ["Hollow Knight", "Celeste", "Delisted Game"]
        assert [e.hours for e in profile.playtime_top] == [2, 1, 0]
        assert profile.playtime_top[0].achievement_ratio == 75
        assert profile.playtime_top[1].achievement_ratio is None
        assert profile.playtime_top[2].tags == []
        assert profile.fav_tags[:2] == ["Metroidvania", "Indie"]
        assert profile.budget_max == 30.0

    def test_max_examples(self):
        index = {i: make_game(i) for i in range(1, 20)}
        owned = [OwnedItem(appid=i, playtime_forever=i * 60) for i in range(1, 20)]
        assert len(build_user_profile(index, owned, {}, None, None).playtime_top) == 8


class TestSummarizeFilters:
    def test_summary_lines(self):
        filters = FilterConfig(
            quick=[QuickTag.HORROR, QuickTag.COOP],
            modes=[PlayMode.ONLINE],
            budget=Budget(kind="quick", tier="10"),
        )
        assert summarize_filters(filters, None) == (
            "Wanted tags: Horror, Co-op\nPlay modes: Online Co-op\nBudget: 10€ or less"
        )

    def test_price_ceiling_only(self):
        assert summarize_filters(None, 25.0) == "Budget: 25€ max"
        assert summarize_filters(FilterConfig(), None) == ""
