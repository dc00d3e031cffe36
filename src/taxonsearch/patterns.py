"""Regular-expression builders for taxon matching.

Two kinds of pattern are built here:

- hybrid permutation patterns, which match an ``x``-joined list of epithets
  in any order
- abbreviated-genus patterns, which match a query like ``R. canina`` against
  full names (a loose pattern for inclusion and a stricter one for ranking)
"""

import itertools
import re
from typing import NamedTuple

# Characters with special meaning in a pattern. Unlike re.escape this leaves
# spaces and hyphens alone so later rewrites can still see word gaps.
_REGEX_SPECIAL = re.compile(r'[.*+?^${}()|[\]\\]')
_HYBRID_SEPARATOR = re.compile(r'\s+x\s+', re.IGNORECASE)

# Any run of spaces/hyphens between two letters
_LETTER_GAP = re.compile(r'(?<=[^\W\d_])[\s-]+(?=[^\W\d_])')

# Joins consecutive epithets of a hybrid permutation
HYBRID_CONNECTOR = '[a-zA-Z]* x '

ABBREVIATED_GENUS = re.compile(r'^(X\s+)?([a-z])[.\s]+(.*?)$', re.IGNORECASE)


def escape_regex(literal: str) -> str:
    """Escape pattern metacharacters in a literal string."""
    return _REGEX_SPECIAL.sub(r'\\\g<0>', literal)


def space_tolerant(pattern: str) -> str:
    """Let spaces and hyphens between letters match each other (or nothing)."""
    return _LETTER_GAP.sub(r'[\\s-]*', pattern)


def generate_hybrid_combinations_regex(names: str) -> str:
    """Build a pattern matching a hybrid name with its parts in any order.

    Args:
        names: Unescaped epithets, e.g. "glandulifera" or "carex x nigra"

    Returns:
        Pattern source. With fewer than two parts this is just the escaped
        input; otherwise an alternation of every ordering, each epithet
        allowed any letters after it before the next " x ".
    """
    split_parts = _HYBRID_SEPARATOR.split(escape_regex(names))
    if len(split_parts) < 2:
        return split_parts[0]

    permutations = [
        HYBRID_CONNECTOR.join(ordering)
        for ordering in itertools.permutations(split_parts)
    ]
    return f"(?:{'|'.join(permutations)})"


class GenusPatterns(NamedTuple):
    """Compiled patterns for an abbreviated-genus query."""

    # Used to decide whether a record matches at all
    loose: re.Pattern

    # Stricter form used only to rank matches as near rather than vague
    near: re.Pattern


def build_abbreviated_genus_patterns(genus_letter: str, remainder: str) -> GenusPatterns:
    """Build loose and near patterns for an abbreviated genus query.

    Args:
        genus_letter: The single genus initial. "X"/"x" also covers hybrid genera.
        remainder: Text after the abbreviated genus, e.g. "canina"

    Returns:
        GenusPatterns for the query
    """
    hybrid_part = generate_hybrid_combinations_regex(remainder)

    if genus_letter in ('X', 'x'):
        # either a genus starting with X or a hybrid genus
        loose = re.compile(rf'^(X\s|X[a-z]+\s+)(x )?\b{hybrid_part}.*', re.IGNORECASE)
        return GenusPatterns(loose=loose, near=loose)

    letter = escape_regex(genus_letter)
    loose = re.compile(rf'^(X )?{letter}[a-z]+ (x )?.*\b{hybrid_part}.*', re.IGNORECASE)
    near = re.compile(rf'^(X )?{letter}[a-z]+ (x )?\b{hybrid_part}.*', re.IGNORECASE)
    return GenusPatterns(loose=loose, near=near)


class NamePatterns(NamedTuple):
    """Compiled patterns for an unabbreviated name query."""

    # Anchored match on the genus followed by the (hybrid-permuted) remainder
    canonical: re.Pattern

    # Same without free text between genus and remainder, for ranking
    near: re.Pattern


def build_name_patterns(taxon_string: str) -> NamePatterns:
    """Build canonical-prefix and near patterns for a full (unabbreviated) name.

    Hybrids written "Genus x epithet" and "Genus epithet" are treated alike.
    """
    if ' ' in taxon_string:
        genus, remainder = taxon_string.split(' ', 1)
        genus_part = escape_regex(genus)
        hybrid_part = generate_hybrid_combinations_regex(remainder)

        canonical_query = rf'{genus_part} (x )?.*\b{hybrid_part}.*'
        near = re.compile(rf'^(?:X\s+)?{genus_part} (x )?\b{hybrid_part}.*', re.IGNORECASE)
    else:
        escaped = escape_regex(taxon_string)
        canonical_query = f'{escaped}.*'
        near = re.compile(f'^{escaped}.*', re.IGNORECASE)

    canonical = re.compile(rf'^(?:X\s+)?{canonical_query}', re.IGNORECASE)
    return NamePatterns(canonical=canonical, near=near)


def build_vernacular_prefix_pattern(raw_query: str) -> re.Pattern:
    """Anchored vernacular pattern tolerant of space/hyphen differences."""
    return re.compile(space_tolerant(f'^{escape_regex(raw_query)}.*'), re.IGNORECASE)


def build_broad_pattern(escaped_query: str) -> re.Pattern:
    """Match an already-escaped query starting at any word boundary."""
    return re.compile(rf'\b{space_tolerant(escaped_query)}.*', re.IGNORECASE)
