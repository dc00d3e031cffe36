"""Name normalization for taxonsearch.

``normalize_taxon_name`` turns a raw name or query into a comparable normal
form by running an ordered rewrite pipeline:

1. hybrid markers (``×``, ``✕``, a stand-alone ``X``) become a lowercase
   ``x`` token, whitespace is collapsed and the ends trimmed
2. rank abbreviations are rewritten to canonical rank tokens
3. informal qualifiers are rewritten to canonical qualifier tokens

Each table entry rewrites its first match only and the tables run in order,
so later entries see (and may re-touch) text produced by earlier ones. A
rewrite can expose text an earlier entry has already run past (deleting a
trailing ``sp.`` leaves ``agg`` at the end of the name), so the pipeline is
repeated until the name stops changing.
"""

import logging
import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from taxonsearch.constants import (
    MAX_NORMALIZE_ROUNDS,
    TAXON_QUALIFIER_REWRITES,
    TAXON_RANK_NAME_REWRITES,
)

logger = logging.getLogger(__name__)

_HYBRID_SYMBOLS = re.compile(r'[×✕]')
_UPPERCASE_HYBRID_TOKEN = re.compile(r'(?<=\s)X(?=\s)')
_WHITESPACE = re.compile(r'\s+')


@dataclass(frozen=True)
class RewriteRule:
    """A single compiled (pattern -> replacement) step."""

    pattern: re.Pattern
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text, count=1)


def compile_rules(table: Sequence[Tuple[str, str]]) -> Tuple[RewriteRule, ...]:
    """Compile a (pattern, replacement) table into case-insensitive rules."""
    return tuple(
        RewriteRule(re.compile(pattern, re.IGNORECASE), replacement)
        for pattern, replacement in table
    )


RANK_NAME_RULES = compile_rules(TAXON_RANK_NAME_REWRITES)
QUALIFIER_RULES = compile_rules(TAXON_QUALIFIER_REWRITES)


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE.sub(' ', text).strip()


def normalize_hybrid_markers(text: str) -> str:
    """Replace hybrid symbols with a space-delimited lowercase ``x`` token."""
    text = _HYBRID_SYMBOLS.sub(' x ', text)
    text = collapse_whitespace(text)
    # a leading "X" marks a hybrid genus and is left alone
    return _UPPERCASE_HYBRID_TOKEN.sub('x', text)


def _rewrite_once(taxon_string: str) -> str:
    taxon_string = normalize_hybrid_markers(taxon_string)

    for rule in RANK_NAME_RULES:
        taxon_string = rule.apply(taxon_string)

    for rule in QUALIFIER_RULES:
        taxon_string = rule.apply(taxon_string)

    # replacements pad with spaces, tidy them up
    return collapse_whitespace(taxon_string)


def normalize_taxon_name(taxon_string: str) -> str:
    """Canonicalize a taxon name or search query.

    Args:
        taxon_string: Raw name, possibly with abbreviations and qualifiers

    Returns:
        The normalized name. Applying this function to its own output
        returns the output unchanged.
    """
    normalized = _rewrite_once(taxon_string)

    for _ in range(MAX_NORMALIZE_ROUNDS):
        rewritten = _rewrite_once(normalized)
        if rewritten == normalized:
            return normalized
        normalized = rewritten

    logger.debug(f"Normalization of '{taxon_string}' still changing after {MAX_NORMALIZE_ROUNDS} rounds")
    return normalized
