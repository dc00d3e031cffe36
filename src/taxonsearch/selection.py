"""Resolve chosen results into stored values.

A caller that lets a user pick from the lookup results stores a
TaxonSelection. Synonyms are normally stored as their accepted name.
"""

from typing import Iterable, Optional

from taxonsearch.registry import TaxonRegistry
from taxonsearch.types.data_classes import ResultRow, TaxonSelection


def select_result(row: ResultRow, always_use_accepted: bool = True) -> TaxonSelection:
    """Return the value to store for a chosen result row."""
    if row.is_synonym and always_use_accepted:
        return TaxonSelection(
            taxon_id=row.accepted_entity_id,
            taxon_name=row.accepted_qname,
            vernacular_match=False,
        )

    return TaxonSelection(
        taxon_id=row.entity_id,
        taxon_name=row.vernacular if row.vernacular_matched else row.qname,
        vernacular_match=row.vernacular_matched,
    )


def find_exact_match(rows: Iterable[ResultRow]) -> Optional[ResultRow]:
    """Return the first exact-match row, or None."""
    return next((row for row in rows if row.exact), None)


def selection_from_taxon_id(registry: TaxonRegistry, taxon_id: Optional[str]) -> TaxonSelection:
    """Build a selection for a taxon id, following synonyms to the accepted name.

    An empty id gives a blank selection.

    Raises:
        TaxonNotFoundError: If the id (or its accepted id) is not in the registry
    """
    if not taxon_id:
        return TaxonSelection()

    record = registry.from_id(taxon_id)
    if record.accepted_entity_id:
        record = registry.from_id(record.accepted_entity_id)

    return TaxonSelection(
        taxon_id=record.id,
        taxon_name=record.qualified_name,
        vernacular_match=False,
    )
