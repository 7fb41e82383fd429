import gzip
import json

import pytest

from app.core.exceptions import CatalogUnavailableError
from app.services.catalog import CatalogService, normalize_dataset
from tests.conftest import make_game

RAW_MAP = {
    "367520": {
        "name": "Hollow Knight",
        "price": 14.79,
        "positive": 90,
        "negative": 10,
        "tags": {"Metroidvania": 500, "Souls-like": 300},
        "genres": ["Action", "Indie"],
        "categories": ["Single-player"],
    },
    "10": {"name": "No Reviews", "price": "n/a"},
    "11": {"price": 5},
    "abc": {"name": "Bad id"},
}


class TestNormalizeDataset:
    def test_map_form(self):
        entries = normalize_dataset(RAW_MAP)
        by_id = {e.appid: e for e in entries}

        assert set(by_id) == {367520, 10}
        hk = by_id[367520]
        assert hk.tags == ["Metroidvania", "Souls-like"]
        assert hk.review_ratio == pytest.approx(0.9)
        assert hk.total_reviews == 100
        assert hk.header_image.endswith("/367520/header.jpg")
        assert hk.store_url == "https://store.steampowered.com/app/367520/"

        assert by_id[10].review_ratio is None
        assert by_id[10].price == 0

    def test_array_form(self):
        raw = [
            {"appid": "42", "name": "Answer", "tags": ["Puzzle"], "review_ratio": 0.8, "total_reviews": 12},
            {"appid": 43},
            "junk",
        ]
        [entry] = normalize_dataset(raw)
        assert entry.appid == 42
        assert entry.tags == ["Puzzle"]

    def test_empty_or_unknown(self):
        assert normalize_dataset(None) == []
        assert normalize_dataset("nope") == []


class TestCatalogService:
    def test_first_readable_path_wins(self, tmp_path):
        gz_path = tmp_path / "games.min.json.gz"
        with gzip.open(gz_path, "wt", encoding="utf-8") as fh:
            json.dump([{"appid": 1, "name": "From gzip"}], fh)
        json_path = tmp_path / "games.json"
        json_path.write_text(json.dumps(RAW_MAP), encoding="utf-8")

        service = CatalogService(paths=[str(tmp_path / "missing.json"), str(gz_path), str(json_path)])

        assert [e.name for e in service.load()] == ["From gzip"]
        assert service.get(1).name == "From gzip"
        assert service.get(2) is None

    def test_unreadable_file_skipped(self, tmp_path):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        good = tmp_path / "good.json"
        good.write_text(json.dumps(RAW_MAP), encoding="utf-8")

        assert len(CatalogService(paths=[str(broken), str(good)]).load()) == 2

    def test_no_dataset(self, tmp_path):
        with pytest.raises(CatalogUnavailableError):
            CatalogService(paths=[str(tmp_path / "missing.json")]).load()


class TestIndieShowcase:
    def test_selection_and_order(self):
        service = CatalogService(paths=[])
        service.set_entries(
            [
                make_game(1, tags=["Indie"], review_ratio=0.7),
                make_game(2, tags=["Indie", "Puzzle"], review_ratio=0.95),
                make_game(3, tags=["Indie"], review_ratio=0.3, total_reviews=500),
                make_game(4, tags=["Indie"], review_ratio=None, total_reviews=4),
                make_game(5, tags=["Action"], review_ratio=0.99),
            ]
        )

        assert [entry.appid for entry in service.indie_showcase()] == [2, 1, 4]

    def test_capped(self):
        service = CatalogService(paths=[])
        service.set_entries([make_game(appid, tags=["Indie"]) for appid in range(40)])
        assert len(service.indie_showcase()) == 30
