import itertools

import pytest

from taxonsearch.normalizer import (
    collapse_whitespace,
    normalize_hybrid_markers,
    normalize_taxon_name,
)


class TestHybridMarkers:
    """Tests for hybrid symbol handling"""

    @pytest.mark.parametrize("raw,expected", [
        ("Carex nigra × flava", "Carex nigra x flava"),
        ("Carex nigra✕flava", "Carex nigra x flava"),
        ("Carex nigra X flava", "Carex nigra x flava"),
        ("Rosa  ×  canina", "Rosa x canina"),
    ])
    def test_symbols_become_lowercase_token(self, raw, expected):
        """Test that every hybrid marker becomes a single lowercase x"""
        assert normalize_hybrid_markers(raw) == expected

    def test_leading_hybrid_genus_marker_is_kept(self):
        """Test that a hybrid-genus X at the start is left as typed"""
        assert normalize_hybrid_markers("X Cupressocyparis leylandii") == "X Cupressocyparis leylandii"


class TestNormalizeTaxonName:
    """Tests for the rank and qualifier rewrite pipeline"""

    @pytest.mark.parametrize("raw,expected", [
        ("Rosa canina", "Rosa canina"),
        ("Rosa canina var alba", "Rosa canina var. alba"),
        ("Poa annua ssp annua", "Poa annua subsp. annua"),
        ("Hieracium sect Alpina", "Hieracium sect. Alpina"),
        ("Mentha cv", "Mentha cv."),
        ("Rubus fruticosus agg", "Rubus fruticosus agg."),
        ("Rubus fruticosus aggregate", "Rubus fruticosus agg."),
        ("Taraxacum officinale sensu lato", "Taraxacum officinale s.l."),
        ("Taraxacum officinale sens. str.", "Taraxacum officinale s.s."),
        ("Quercus sp.", "Quercus"),
        ("Ulmus sp. (excluding Ulmus glabra)", "Ulmus (excluding Ulmus glabra)"),
        ("Salix caprea (f x m or m x f)", "Salix caprea"),
        ("Petasites hybridus 'male'", "Petasites hybridus male"),
    ])
    def test_rewrites(self, raw, expected):
        """Test that abbreviations and qualifiers are rewritten to canonical tokens"""
        assert normalize_taxon_name(raw) == expected, f"Unexpected normal form for '{raw}'"

    @pytest.mark.parametrize("raw", [
        "Rosa canina",
        "Carex nigra × flava",
        "Rosa canina var alba",
        "Poa annua ssp annua",
        "Hieracium sect Alpina",
        "Mentha cv",
        "Rubus fruticosus aggregate",
        "Taraxacum officinale sensu lato",
        "Taraxacum officinale sens. str.",
        "Quercus sp.",
        "Ulmus sp. (excluding Ulmus glabra)",
        "Salix caprea (f x m or m x f)",
        "Petasites hybridus 'male'",
        "  Rosa   canina  ",
        "Rubus fruticosus agg sp",
        "Quercus sp. sp.",
        "Salix cf sp",
        "Taraxacum p.p. sp",
        "Petasites hybridus 'male' sp",
        "Salix X(f x m)",
    ])
    def test_normalize_is_idempotent(self, raw):
        """Test that normalizing a normalized name changes nothing"""
        once = normalize_taxon_name(raw)
        assert normalize_taxon_name(once) == once

    def test_output_has_no_padding(self):
        """Test that replacement padding never leaks into the result"""
        result = normalize_taxon_name("  Rubus   fruticosus agg ")
        assert result == collapse_whitespace(result)
        assert not result.startswith(" ") and not result.endswith(" ")

    @pytest.mark.parametrize("raw,expected", [
        ("Rubus fruticosus agg sp", "Rubus fruticosus agg."),
        ("Quercus sp. sp.", "Quercus"),
        ("Salix cf sp", "Salix cf."),
        ("Taraxacum p.p. sp", "Taraxacum pro parte"),
    ])
    def test_rewrites_exposed_by_later_rules(self, raw, expected):
        """Test that text uncovered by a deletion is still rewritten"""
        assert normalize_taxon_name(raw) == expected

    def test_generated_names_are_idempotent(self):
        """Test idempotence over every short combination of rank and qualifier tokens"""
        tokens = [
            "agg", "sp", "sp.", "spp", "species", "cf", "p.p.", "'male'", "s.l.",
            "sensu", "lato", "str.", "var", "ssp", "cv", "x", "×", "X", "f", "nud.", "gp",
        ]
        failures = []
        for size in (1, 2, 3):
            for combination in itertools.product(tokens, repeat=size):
                raw = "Rosa canina " + " ".join(combination)
                once = normalize_taxon_name(raw)
                if normalize_taxon_name(once) != once:
                    failures.append((raw, once))

        assert not failures, f"{len(failures)} non-idempotent names, e.g. {failures[:5]}"
