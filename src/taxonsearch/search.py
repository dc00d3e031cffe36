"""Taxon name lookup.

``TaxonSearch.lookup`` resolves free text (scientific names, abbreviated
genera, hybrid formulae, vernacular names) into a short ranked list of
checklist entries suitable for autocomplete.

A lookup is a pure function of the query, the registry and the engine's
settings: it runs to completion without blocking and keeps no state
between calls. Share one registry between engines freely, but don't change
an engine's filters while another caller's lookup on it is running.
"""

import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import unquote

from taxonsearch.collation import collator_equal
from taxonsearch.config import SearchConfig
from taxonsearch.constants import BROAD_MATCH_THRESHOLD, MAX_BROADENING_DEPTH
from taxonsearch.normalizer import normalize_taxon_name
from taxonsearch.patterns import (
    ABBREVIATED_GENUS,
    build_abbreviated_genus_patterns,
    build_broad_pattern,
    build_name_patterns,
    build_vernacular_prefix_pattern,
    escape_regex,
)
from taxonsearch.ranking import Candidates, ResultCompiler
from taxonsearch.registry import TaxonRegistry
from taxonsearch.types.data_classes import MatchCandidate, ResultRow

logger = logging.getLogger(__name__)

_PREFERS_HYBRIDS = re.compile(r' x\b')
_TRAILING_HYBRID_MARKER = re.compile(r'\s+x$', re.IGNORECASE)


def deduplicate_results(rows: Sequence[ResultRow]) -> List[ResultRow]:
    """Drop repeated entity ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for row in rows:
        if row.entity_id not in seen:
            seen.add(row.entity_id)
            unique.append(row)
    return unique


class TaxonSearch(ResultCompiler):
    """Search engine over a TaxonRegistry.

    Args:
        registry: A populated, read-only registry
        search_config: Immutable settings; defaults to ``SearchConfig()``

    Raises:
        RegistryNotInitialisedError: If the registry is missing or empty
    """

    def __init__(self, registry: TaxonRegistry, search_config: Optional[SearchConfig] = None):
        super().__init__(registry, search_config)

    @property
    def show_vernacular(self) -> bool:
        return self.search_config.show_vernacular

    def lookup(
        self,
        query: str,
        previous_results: Sequence[ResultRow] = (),
        allow_exact: bool = True,
    ) -> List[ResultRow]:
        """Find and rank taxa matching a query.

        Args:
            query: Raw or percent-encoded search text
            previous_results: Rows from an earlier pass; kept in the output
            allow_exact: If False, never flag results as exact matches

        Returns:
            Up to ``maximum_results`` rows in rank order. A query that
            normalizes to nothing returns ``previous_results`` unchanged.
        """
        return self._lookup(query, list(previous_results), allow_exact, depth=0)

    def _lookup(
        self,
        query: str,
        previous: List[ResultRow],
        allow_exact: bool,
        depth: int,
    ) -> List[ResultRow]:
        decoded_string = unquote(query).strip()
        if len(decoded_string) < self.search_config.min_search_length:
            return previous

        taxon_string = normalize_taxon_name(decoded_string)
        prefer_hybrids = _PREFERS_HYBRIDS.search(taxon_string) is not None

        # a dangling " x" would only muck up matching
        taxon_string = _TRAILING_HYBRID_MARKER.sub('', taxon_string)

        if taxon_string == '':
            return previous

        logger.debug(f"Lookup '{decoded_string}' normalized to '{taxon_string}' (depth {depth})")

        abbreviated = ABBREVIATED_GENUS.match(taxon_string)
        if abbreviated:
            results = self._lookup_abbreviated(
                abbreviated.group(2), abbreviated.group(3),
                taxon_string, prefer_hybrids, previous, allow_exact,
            )
        elif self.show_vernacular:
            results = self._lookup_with_vernacular(
                taxon_string, decoded_string, prefer_hybrids, previous, allow_exact,
            )
        else:
            results = self._lookup_names(taxon_string, prefer_hybrids, previous, allow_exact)

        if len(results) == 1 and not previous and depth < MAX_BROADENING_DEPTH:
            results = self._broaden_single_result(results, taxon_string, depth)

        return results

    def _lookup_abbreviated(
        self,
        genus_letter: str,
        remainder: str,
        taxon_string: str,
        prefer_hybrids: bool,
        previous: List[ResultRow],
        allow_exact: bool,
    ) -> List[ResultRow]:
        """Match a query whose genus is a single initial, e.g. "R. canina"."""
        patterns = build_abbreviated_genus_patterns(genus_letter, remainder)
        matched: Candidates = {}

        for taxon_id, record in self.registry.items():
            if patterns.loose.search(record.canonical) or (
                record.hybrid_canonical_name and patterns.loose.search(record.hybrid_canonical_name)
            ):
                matched[taxon_id] = MatchCandidate(
                    taxon_id,
                    exact=allow_exact and record.name_string == taxon_string,
                    near=patterns.near.search(record.name_string) is not None,
                )

        logger.debug(f"Abbreviated genus '{genus_letter}' matched {len(matched)} taxa")
        return self.compile_results(matched, prefer_hybrids, previous)

    def _lookup_names(
        self,
        taxon_string: str,
        prefer_hybrids: bool,
        previous: List[ResultRow],
        allow_exact: bool,
    ) -> List[ResultRow]:
        """Match scientific names only (vernacular matching switched off)."""
        patterns = build_name_patterns(taxon_string)
        matched: Candidates = {}

        for taxon_id, record in self.registry.items():
            if patterns.canonical.search(record.name_string) or (
                record.has_distinct_canonical and patterns.canonical.search(record.canonical)
            ):
                matched[taxon_id] = MatchCandidate(
                    taxon_id,
                    exact=allow_exact and collator_equal(record.name_string, taxon_string),
                )

        logger.debug(f"Name match for '{taxon_string}' found {len(matched)} taxa")
        return self.compile_results(matched, prefer_hybrids, previous)

    def _lookup_with_vernacular(
        self,
        taxon_string: str,
        decoded_string: str,
        prefer_hybrids: bool,
        previous: List[ResultRow],
        allow_exact: bool,
    ) -> List[ResultRow]:
        """Match scientific and vernacular names, widening the net if few match."""
        patterns = build_name_patterns(taxon_string)
        vernacular_pattern = build_vernacular_prefix_pattern(decoded_string)
        matched: Candidates = {}

        for taxon_id, record in self.registry.items():
            canonical = record.canonical

            if patterns.canonical.search(record.name_string) or (
                record.has_distinct_canonical and patterns.canonical.search(canonical)
            ):
                matched[taxon_id] = MatchCandidate(
                    taxon_id,
                    exact=allow_exact and collator_equal(record.name_string, taxon_string),
                    near=bool(
                        patterns.near.search(record.name_string) or patterns.near.search(canonical)
                    ),
                )
            elif not record.bad_vernacular and (
                vernacular_pattern.search(record.vernacular_name)
                or vernacular_pattern.search(record.vernacular_root)
            ):
                matched[taxon_id] = MatchCandidate(
                    taxon_id,
                    exact=allow_exact and collator_equal(record.vernacular_name, taxon_string),
                    vernacular_matched=True,
                )

        results = self.compile_results(matched, prefer_hybrids, previous)

        if len(results) < BROAD_MATCH_THRESHOLD:
            logger.debug(f"Only {len(results)} results for '{taxon_string}', trying a broad match")
            self._add_broad_matches(matched, taxon_string, decoded_string, allow_exact)
            results = self.compile_results(matched, prefer_hybrids, previous)

        return results

    def _add_broad_matches(
        self,
        matched: Candidates,
        taxon_string: str,
        decoded_string: str,
        allow_exact: bool,
    ) -> None:
        """Add taxa whose names contain the query at any word boundary.

        Broad matches are never flagged as near.
        """
        broad_pattern = build_broad_pattern(escape_regex(taxon_string))
        broad_vernacular_pattern = build_broad_pattern(escape_regex(decoded_string))

        for taxon_id, record in self.registry.items():
            if taxon_id in matched:
                continue

            exact = allow_exact and record.name_string == taxon_string
            if broad_pattern.search(record.name_string) or (
                record.has_distinct_canonical and broad_pattern.search(record.canonical)
            ):
                matched[taxon_id] = MatchCandidate(taxon_id, exact=exact)
            elif not record.bad_vernacular and broad_vernacular_pattern.search(record.vernacular_name):
                matched[taxon_id] = MatchCandidate(taxon_id, exact=exact, vernacular_matched=True)

    def _broaden_single_result(
        self,
        results: List[ResultRow],
        taxon_string: str,
        depth: int,
    ) -> List[ResultRow]:
        """Widen a lone top-level hit to its genus or its relatives."""
        only = results[0]

        if ' ' in taxon_string and not only.vernacular_matched:
            genus = taxon_string[:taxon_string.index(' ')]
            logger.debug(f"Broadening single result '{only.uname}' to genus '{genus}'")
            results = results + self._lookup(genus, results, False, depth + 1)
        elif only.vernacular_matched and only.exact:
            logger.debug(f"Broadening exact vernacular match '{only.vernacular}' to relatives")
            results = results + self.lookup_parent_results(only.entity_id, True)
        else:
            return results

        return deduplicate_results(results)[:self.search_config.maximum_results]
