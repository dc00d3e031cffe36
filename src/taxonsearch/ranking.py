"""Result compilation and ranking.

``ResultCompiler`` turns the candidates gathered by a lookup into ranked
result rows: it applies the per-instance filters, resolves synonyms to
their accepted names, renders each row and sorts with ``compare_rows``.
``TaxonSearch`` builds on it to add the matching itself.
"""

import functools
import logging
import re
from typing import Dict, List, Optional, Sequence

from taxonsearch.collation import collator_compare
from taxonsearch.config import SearchConfig
from taxonsearch.constants import CLEAN_RANK_NAMES, HYBRID_MARKER, QUALIFIER_PRIORITY
from taxonsearch.exceptions import RegistryNotInitialisedError, TaxonIntegrityError
from taxonsearch.formatter import Formatter
from taxonsearch.registry import TaxonRegistry
from taxonsearch.types.data_classes import MatchCandidate, ResultRow, TaxonRecord

logger = logging.getLogger(__name__)

# Ordered mapping of taxon id to candidate, in registry scan order
Candidates = Dict[str, MatchCandidate]

_HYBRID_PREFIX = re.compile(r"\bx ", re.IGNORECASE)


def _qualifier_rank(qualifier: Optional[str]) -> int:
    try:
        return QUALIFIER_PRIORITY.index(qualifier)
    except ValueError:
        return -1


def sort_name(uname: str) -> str:
    """Strip rank tokens, apostrophes and hybrid markers for the final tie-break."""
    stripped = CLEAN_RANK_NAMES.sub(' ', uname).replace("'", '')
    return _HYBRID_PREFIX.sub('', stripped)


def compare_rows(a: ResultRow, b: ResultRow, prefer_hybrids: bool = False) -> int:
    """Three-way comparison deciding result order.

    Rules are tried in turn and the first that separates the rows wins:
    exact match, near match, hybrid status, same-name accepted/qualifier
    preference, vernacular length, accepted over synonym, then the
    collated name with rank tokens removed.
    """
    if a.exact:
        if b.exact:
            # prefer the accepted name
            return 1 if a.accepted_entity_id else -1
        return -1
    elif b.exact:
        return 1

    if a.near:
        if not b.near:
            return -1
    elif b.near:
        return 1

    a_is_hybrid = HYBRID_MARKER.search(a.uname) is not None
    b_is_hybrid = HYBRID_MARKER.search(b.uname) is not None

    if a_is_hybrid:
        if b_is_hybrid:
            if a.uname == b.uname:
                return 1 if a.accepted_entity_id else 0
            order = collator_compare(a.qname, b.qname)
            if order:
                return order
            return -1 if a.qname < b.qname else 1
        return -1 if prefer_hybrids else 1
    elif b_is_hybrid:
        return 1 if prefer_hybrids else -1
    elif a.uname == b.uname:
        if bool(a.accepted_entity_id) != bool(b.accepted_entity_id):
            return 1 if a.accepted_entity_id else -1

        # s.l. and agg. are preferred over a blank qualifier or s.s.
        a_index = _qualifier_rank(a.qualifier)
        b_index = _qualifier_rank(b.qualifier)
        if a_index == b_index:
            return 0
        return 1 if a_index < b_index else -1
    elif a.vernacular_matched and b.vernacular_matched:
        if a.vernacular != b.vernacular:
            return -1 if len(a.vernacular) < len(b.vernacular) else 1

    # accepted_entity_id is only set on synonyms
    if a.accepted_entity_id and not b.accepted_entity_id:
        return 1
    if b.accepted_entity_id and not a.accepted_entity_id:
        return -1

    return collator_compare(sort_name(a.uname), sort_name(b.uname))


def sort_results(rows: List[ResultRow], prefer_hybrids: bool) -> List[ResultRow]:
    """Return the rows in rank order."""
    comparator = functools.partial(compare_rows, prefer_hybrids=prefer_hybrids)
    return sorted(rows, key=functools.cmp_to_key(comparator))


class ResultCompiler:
    """Filters, resolves, renders and ranks match candidates.

    Attributes:
        registry: The shared, read-only taxon registry
        search_config: Immutable engine settings
        require_extant_records: Only keep taxa that have occurrence records
        minimum_rank_sort: If positive, only keep taxa at or above this rank value
    """

    def __init__(self, registry: TaxonRegistry, search_config: Optional[SearchConfig] = None):
        if registry is None or len(registry) == 0:
            raise RegistryNotInitialisedError(
                "A populated TaxonRegistry must be supplied before searching"
            )
        self.registry = registry
        self.search_config = search_config or SearchConfig()
        self.formatter = Formatter(self.search_config.show_vernacular)

        self.require_extant_records = False
        self.minimum_rank_sort: Optional[int] = None

    def _passes_filters(self, record: TaxonRecord) -> bool:
        if self.require_extant_records and not record.used:
            return False
        if self.minimum_rank_sort and self.minimum_rank_sort > 0:
            return record.min_rank_sort >= self.minimum_rank_sort
        return True

    def build_row(self, record: TaxonRecord, candidate: MatchCandidate) -> ResultRow:
        """Build the display row for a matched record.

        Raises:
            TaxonIntegrityError: If a synonym's accepted record is missing
        """
        qname = record.qualified_name
        fields = dict(
            entity_id=record.id,
            vernacular=record.vernacular_name,
            qname=qname,
            name=qname,
            qualifier=record.qualifier,
            authority=record.authority,
            uname=record.name_string,
            vernacular_matched=candidate.vernacular_matched,
            exact=candidate.exact,
            near=candidate.near,
        )

        if record.accepted_entity_id:
            accepted = self.registry.accepted_record(record)
            if accepted is None:
                logger.error(
                    f"Taxon {record.id} points at missing accepted taxon {record.accepted_entity_id}"
                )
                raise TaxonIntegrityError(record.id, record.accepted_entity_id)

            fields.update(
                accepted_entity_id=record.accepted_entity_id,
                accepted_name_string=accepted.name_string,
                accepted_qualifier=accepted.qualifier,
                accepted_authority=accepted.authority,
                accepted_qname=accepted.qualified_name,
            )

        row = ResultRow(**fields)
        return ResultRow(**{**fields, "formatted": self.formatter.format(row)})

    def compile_results(
        self,
        candidates: Candidates,
        prefer_hybrids: bool,
        previous: Sequence[ResultRow] = (),
    ) -> List[ResultRow]:
        """Turn candidates into a ranked, truncated list of rows.

        Args:
            candidates: Ordered mapping of taxon id to MatchCandidate
            prefer_hybrids: Rank hybrid names ahead of non-hybrids
            previous: Rows from an earlier pass, carried into the result

        Returns:
            At most ``search_config.maximum_results`` rows in rank order
        """
        results = list(previous)

        for taxon_id, candidate in candidates.items():
            record = self.registry[taxon_id]
            if self._passes_filters(record):
                results.append(self.build_row(record, candidate))

        if not results:
            return results

        results = sort_results(results, prefer_hybrids)
        return results[:self.search_config.maximum_results]

    def lookup_parent_results(self, taxon_id: str, use_vernacular: bool) -> List[ResultRow]:
        """Find taxa sharing an ancestor with the given taxon.

        Args:
            taxon_id: Id of the reference taxon
            use_vernacular: Select taxa with a vernacular name (flagged as
                vernacular matches) rather than accepted names

        Returns:
            Ranked rows; empty when the taxon has no ancestors
        """
        reference = self.registry.from_id(taxon_id)
        if not reference.parent_ids:
            return []

        parent_ids = set(reference.parent_ids)
        matched: Candidates = {}

        for test_id, record in self.registry.items():
            if parent_ids.isdisjoint(record.parent_ids):
                continue
            if use_vernacular:
                if record.vernacular_name:
                    matched[test_id] = MatchCandidate(test_id, vernacular_matched=True)
            elif record.is_accepted:
                matched[test_id] = MatchCandidate(test_id)

        logger.debug(f"Parent broadening of {taxon_id} matched {len(matched)} taxa")
        return self.compile_results(matched, False, [])
