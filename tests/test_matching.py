import pytest

from app.core.exceptions import ReconciliationEmptyError
from app.models.ranking import IdPick, TitlePick
from app.services.recommendation.matching import (
    match_title,
    normalize_title,
    reconcile_id_picks,
    reconcile_title_picks,
)
from tests.conftest import make_scored


@pytest.fixture
def pool():
    return [
        make_scored(10, ["Metroidvania"], name="Hollow Knight", compatibility=91),
        make_scored(11, ["Farming Sim"], name="Stardew Valley", compatibility=80, price=13.99),
        make_scored(12, ["Roguelite"], name="Hades II", compatibility=75),
        make_scored(13, ["FPS"], name="DOOM Eternal", compatibility=60),
    ]


class TestNormalizeTitle:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Hollow Knight™", "hollow knight"),
            ("DOOM: Eternal", "doom eternal"),
            ("  Baldur's Gate 3 ", "baldur s gate 3"),
            ("Half-Life 2®", "half life 2"),
            ("Disgaea 5+", "disgaea 5+"),
            (None, ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_title(raw) == expected


class TestMatchTitle:
    def test_exact(self, pool):
        assert match_title("hollow knight", pool).appid == 10

    def test_containment(self, pool):
        assert match_title("Hades", pool).appid == 12
        assert match_title("DOOM Eternal - Deluxe Edition", pool).appid == 13

    def test_whitespace_insensitive(self, pool):
        assert match_title("StardewValley", pool).appid == 11

    def test_no_match(self, pool):
        assert match_title("Half-Life 3", pool) is None
        assert match_title("™", pool) is None


class TestReconcile:
    def test_title_picks_keep_reason_and_scorer_compatibility(self, pool):
        items = reconcile_title_picks([TitlePick(title="Stardew Valley", reason="Cozy.")], pool)

        assert [i.appid for i in items] == [11]
        assert items[0].reason == "Cozy."
        assert items[0].compatibility == 80
        assert items[0].price_label == "13.99€"

    def test_title_picks_deduplicated_and_unknown_dropped(self, pool):
        picks = [
            TitlePick(title="Hollow Knight"),
            TitlePick(title="Invented Game"),
            TitlePick(title="HOLLOW KNIGHT™"),
            TitlePick(title="Hades"),
        ]
        assert [i.appid for i in reconcile_title_picks(picks, pool)] == [10, 12]

    def test_title_picks_capped_at_three(self, pool):
        picks = [TitlePick(title=c.name) for c in pool]
        assert len(reconcile_title_picks(picks, pool)) == 3

    def test_title_picks_all_unknown(self, pool):
        with pytest.raises(ReconciliationEmptyError):
            reconcile_title_picks([TitlePick(title="Nope")], pool)

    def test_id_picks_only_from_pool(self, pool):
        picks = [IdPick(appid=999, compatibility=99), IdPick(appid=13, compatibility=250), IdPick(appid=13)]
        items = reconcile_id_picks(picks, pool)

        assert [i.appid for i in items] == [13]
        assert items[0].compatibility == 100

    def test_id_picks_all_unknown(self, pool):
        with pytest.raises(ReconciliationEmptyError):
            reconcile_id_picks([IdPick(appid=1)], pool)
