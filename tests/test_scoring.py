import pytest

from app.models.filters import FilterConfig, QuickTag
from app.models.profile import AffinityProfile
from app.services.recommendation.scoring import CandidateScorer, RecommendationScoring, round_half_up
from tests.conftest import make_game


class TestPrimitives:
    def test_string_hash_matches_32bit_rolling_hash(self):
        assert RecommendationScoring.string_hash("") == 0
        assert RecommendationScoring.string_hash("ab") == 97 * 31 + 98
        assert RecommendationScoring.string_hash("hello") == 99162322
        # Wraps around to the smallest signed 32-bit integer
        assert RecommendationScoring.string_hash("polygenelubricants") == -(2**31)

    def test_deterministic_unit_is_stable_and_bounded(self):
        first = RecommendationScoring.deterministic_unit("user-a", 367520)
        assert first == RecommendationScoring.deterministic_unit("user-a", 367520)
        assert 0 <= first < 1
        assert first != RecommendationScoring.deterministic_unit("user-b", 367520)

    def test_review_score(self):
        best = make_game(1, review_ratio=1.0, total_reviews=999)
        unknown = make_game(2, review_ratio=None, total_reviews=0)
        poor = make_game(3, review_ratio=0.4, total_reviews=5000)

        assert RecommendationScoring.review_score(best) == pytest.approx(1.0)
        assert RecommendationScoring.review_score(unknown) == pytest.approx(0.1)
        assert RecommendationScoring.review_score(poor) == 0

    def test_overlap_divides_by_candidate_tags(self):
        profile = AffinityProfile(top_tags=["A", "B", "Z"])
        assert RecommendationScoring.overlap(make_game(1, tags=["A", "B", "C", "D"]), profile) == 0.5
        assert RecommendationScoring.overlap(make_game(2, tags=[]), profile) == 0

    @pytest.mark.parametrize("surprise, cap", [(False, 0.3 * 0.2), (True, 0.3 * 0.3)])
    def test_novelty_is_capped(self, surprise, cap):
        for appid in range(1, 200):
            value = RecommendationScoring.novelty("someone", appid, 0.0, surprise)
            assert 0 <= value <= cap + 1e-12

    def test_normalize_percent(self):
        assert RecommendationScoring.normalize_percent(5, 5, 5) == 50
        assert RecommendationScoring.normalize_percent(0, 0, 10) == 0
        assert RecommendationScoring.normalize_percent(10, 0, 10) == 100
        assert RecommendationScoring.normalize_percent(1, 0, 8) == 13
        # Below the normalization pool
        assert RecommendationScoring.normalize_percent(-5, 0, 10) == 0

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestCandidateScorer:
    def test_owned_gate_and_price_exclusions(self, catalog, owned, completions):
        scored = CandidateScorer().score(catalog, owned, completions)

        assert [c.appid for c in scored] == [10, 11, 12, 13]

    def test_owned_games_never_returned(self, catalog, owned):
        scored = CandidateScorer().score(catalog, owned)
        returned = {c.appid for c in scored}
        assert returned.isdisjoint({item.appid for item in owned})

    def test_poorly_reviewed_game_is_rejected(self, owned):
        # 60 reviews at 60% positive does not pass the >= 50 reviews / 70% gate
        catalog = [make_game(20, review_ratio=0.6, total_reviews=60), make_game(21)]
        assert [c.appid for c in CandidateScorer().score(catalog, owned)] == [21]

    def test_compatibility_range_and_order(self, catalog, owned, completions):
        scored = CandidateScorer().score(catalog, owned, completions)

        assert all(0 <= c.compatibility <= 100 for c in scored)
        assert scored[0].compatibility == 100
        assert scored[-1].compatibility == 0
        assert [c.score for c in scored] == sorted((c.score for c in scored), reverse=True)

    def test_single_candidate_gets_neutral_compatibility(self, owned):
        scored = CandidateScorer().score([make_game(30)], owned)
        assert len(scored) == 1
        assert scored[0].compatibility == 50

    def test_price_ceiling(self, catalog, owned):
        scored = CandidateScorer().score(catalog, owned, price_max=20)
        assert 10 not in {c.appid for c in scored}
        assert all(c.price <= 20 for c in scored)

    def test_banned_titles_case_insensitive(self, catalog, owned):
        scored = CandidateScorer().score(catalog, owned, banned_titles=["DEAD CELLS"])
        assert 10 not in {c.appid for c in scored}

    def test_quick_filter(self, catalog, owned):
        scored = CandidateScorer().score(catalog, owned, filters=FilterConfig(quick=[QuickTag.FPS]))
        assert [c.appid for c in scored] == [12]

    def test_deterministic(self, catalog, owned, completions):
        scorer = CandidateScorer()
        first = scorer.score(catalog, owned, completions, user_id="u1", surprise=True)
        second = scorer.score(catalog, owned, completions, user_id="u1", surprise=True)
        assert [(c.appid, c.score) for c in first] == [(c.appid, c.score) for c in second]

    def test_empty_catalog(self, owned):
        assert CandidateScorer().score([], owned) == []
