"""Base-level string collation.

Compares strings the way an English collator configured with base
sensitivity and ignored punctuation does: case, diacritics, whitespace and
punctuation make no difference to equality.
"""

import unicodedata


def collation_key(text: str) -> str:
    """Return the base-level comparison key for a string."""
    normalized = unicodedata.normalize("NFKD", text or "")
    return "".join(
        ch for ch in normalized
        if ch.isalnum() and not unicodedata.combining(ch)
    ).casefold()


def collator_compare(a: str, b: str) -> int:
    """Three-way base-level comparison (-1, 0 or 1)."""
    key_a = collation_key(a)
    key_b = collation_key(b)
    return (key_a > key_b) - (key_a < key_b)


def collator_equal(a: str, b: str) -> bool:
    """Return whether two strings are equal at base level."""
    return collation_key(a) == collation_key(b)
