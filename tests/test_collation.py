import pytest

from taxonsearch.collation import collation_key, collator_compare, collator_equal


class TestCollatorEqual:
    """Tests for base-level string equality"""

    @pytest.mark.parametrize("a,b", [
        ("Rosa canina", "ROSA canina"),
        ("Rósa", "Rosa"),
        ("Dog-rose", "dog rose"),
        ("Léman", "leman"),
        ("Rosa  canina", "Rosa canina"),
    ])
    def test_ignores_case_accents_and_punctuation(self, a, b):
        """Test that case, diacritics, spacing and punctuation don't matter"""
        assert collator_equal(a, b), f"'{a}' should collate equal to '{b}'"
        assert collator_compare(a, b) == 0

    def test_different_letters(self):
        assert not collator_equal("Rosa canina", "Rosa arvensis")

    def test_empty_values(self):
        assert collation_key(None) == ""
        assert collator_equal("", "-")


class TestCollatorCompare:
    """Tests for base-level ordering"""

    @pytest.mark.parametrize("a,b", [
        ("Rosa arvensis", "rosa canina"),
        ("Rosa", "Rosa canina"),
        ("Ábies", "Acer"),
        ("dog-rose", "Dogwood"),
    ])
    def test_ordering(self, a, b):
        """Test that the first string sorts before the second"""
        assert collator_compare(a, b) == -1
        assert collator_compare(b, a) == 1
