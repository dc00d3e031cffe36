import json
import logging

import polars as pl
import pytest

from taxonsearch import taxon_loader
from taxonsearch.exceptions import TaxonDataFormatError
from taxonsearch.taxon_loader import build_registry, load_registry, record_from_row

CSV_TEXT = (
    "id,name_string,canonical_name,accepted_entity_id,qualifier,authority,"
    "vernacular_name,used,min_rank_sort,bad_vernacular,parent_ids\n"
    "1,Rosa canina,,,,L.,Dog-rose,1,30,0,g1|g2\n"
    "2,Rosa lutetiana,Rosa lutetiana,1,,Léman,,0,30,,g1\n"
    "g1,Rosa,,,,L.,,0,20,,\n"
)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "taxa.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


class TestBuildRegistry:
    """Tests for reading the supported file formats"""

    def test_csv(self, csv_file):
        """Test that CSV text columns are converted to record fields"""
        registry = build_registry(csv_file, show_progress=False)

        assert list(registry) == ["1", "2", "g1"]
        canina = registry["1"]
        assert canina.parent_ids == ("g1", "g2")
        assert canina.used is True
        assert canina.min_rank_sort == 30
        assert canina.canonical_name is None
        assert canina.vernacular_name == "Dog-rose"

        synonym = registry["2"]
        assert synonym.accepted_entity_id == "1"
        assert synonym.canonical_name is None, "A canonical equal to the name is dropped"
        assert synonym.authority == "Léman"
        assert synonym.bad_vernacular is False

        assert registry["g1"].parent_ids == ()

    def test_parquet(self, tmp_path):
        """Test typed Parquet columns, including list-valued parent ids"""
        path = tmp_path / "taxa.parquet"
        pl.DataFrame({
            "id": ["1", "2"],
            "name_string": ["Quercus robur", "Quercus petraea"],
            "used": [True, False],
            "min_rank_sort": [30, 30],
            "parent_ids": [["g1"], ["g1", "f1"]],
        }).write_parquet(path)

        registry = build_registry(path, show_progress=False)

        assert registry["1"].used is True
        assert registry["2"].parent_ids == ("g1", "f1")
        assert registry["2"].min_rank_sort == 30

    def test_json(self, tmp_path):
        path = tmp_path / "taxa.json"
        path.write_text(json.dumps({"1": ["Rosa canina", 0, "", "", "", "L."]}), encoding="utf-8")

        registry = build_registry(path)
        assert registry["1"].authority == "L."

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "taxa.json"
        path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(TaxonDataFormatError):
            build_registry(path)

    def test_missing_required_columns(self, tmp_path):
        path = tmp_path / "taxa.csv"
        path.write_text("id,authority\n1,L.\n", encoding="utf-8")
        with pytest.raises(TaxonDataFormatError, match="name_string"):
            build_registry(path, show_progress=False)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "taxa.txt"
        path.write_text("Rosa canina\n", encoding="utf-8")
        with pytest.raises(TaxonDataFormatError):
            build_registry(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            build_registry(tmp_path / "missing.csv")

    def test_dangling_links_are_warned(self, tmp_path, caplog):
        """Test that unresolvable accepted-name links are reported at load time"""
        path = tmp_path / "taxa.csv"
        path.write_text("id,name_string,accepted_entity_id\n1,Rosa obscura,404\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            registry = build_registry(path, show_progress=False)

        assert len(registry) == 1
        assert "accepted names missing" in caplog.text


@pytest.mark.parametrize("value", ["", "0", "Rosa canina", None])
def test_record_from_row_canonical_sentinels(value):
    record = record_from_row({"id": "1", "name_string": "Rosa canina", "canonical_name": value})
    assert record.canonical_name is None


def test_record_from_row_invalid_rank():
    with pytest.raises(TaxonDataFormatError):
        record_from_row({"id": "1", "name_string": "Rosa", "min_rank_sort": "genus"})


class TestLoadRegistryCache:
    """Tests for the registry cache used by load_registry"""

    def test_second_load_uses_cache(self, csv_file, monkeypatch):
        """Test that an unchanged file is served from the cache"""
        first = load_registry(csv_file, show_progress=False)

        def fail(*args, **kwargs):
            raise AssertionError("registry should come from the cache")

        monkeypatch.setattr(taxon_loader, "build_registry", fail)
        second = load_registry(csv_file, show_progress=False)

        assert second == first
        assert second["1"].parent_ids == ("g1", "g2")

    def test_refresh_and_no_cache_rebuild(self, csv_file, monkeypatch):
        """Test that refresh_cache and use_cache=False bypass the cached copy"""
        load_registry(csv_file, show_progress=False)
        calls = []

        def counting_build(path, show_progress=True):
            calls.append(path)
            return build_registry(path, show_progress=False)

        monkeypatch.setattr(taxon_loader, "build_registry", counting_build)
        load_registry(csv_file, refresh_cache=True, show_progress=False)
        load_registry(csv_file, use_cache=False, show_progress=False)

        assert len(calls) == 2

    def test_changed_file_invalidates_cache(self, csv_file):
        load_registry(csv_file, show_progress=False)
        csv_file.write_text(CSV_TEXT + "g2,Rosaceae,,,,Juss.,,0,10,,\n", encoding="utf-8")

        registry = load_registry(csv_file, show_progress=False)
        assert "g2" in registry
