"""In-memory taxon registry.

The registry is the single, read-only table of taxon records that every
lookup scans. It is built once (see ``taxon_loader``) and shared by
reference between any number of search engines; nothing mutates it after
construction, so concurrent readers need no coordination.
"""

import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from taxonsearch.constants import (
    RAW_ACCEPTED_ENTITY_ID,
    RAW_AUTHORITY,
    RAW_BAD_VERNACULAR,
    RAW_CANONICAL,
    RAW_CANONICAL_SAME_AS_NAME,
    RAW_HYBRID_CANONICAL,
    RAW_MIN_RANK,
    RAW_NAME_STRING,
    RAW_PARENT_IDS,
    RAW_QUALIFIER,
    RAW_USED,
    RAW_VERNACULAR,
    RAW_VERNACULAR_ROOT,
)
from taxonsearch.exceptions import TaxonDataFormatError, TaxonNotFoundError
from taxonsearch.types.data_classes import TaxonRecord

logger = logging.getLogger(__name__)


class TaxonRegistry(Mapping):
    """Immutable mapping of taxon id to TaxonRecord.

    Iteration follows insertion order, which keeps lookups deterministic.
    """

    def __init__(self, records: Iterable[TaxonRecord] = ()):
        self._records: Dict[str, TaxonRecord] = {}
        for record in records:
            if record.id in self._records:
                raise TaxonDataFormatError(f"Duplicate taxon id: {record.id}")
            self._records[record.id] = record

    def __getitem__(self, taxon_id: str) -> TaxonRecord:
        return self._records[taxon_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"TaxonRegistry({len(self._records)} taxa)"

    def from_id(self, taxon_id: str) -> TaxonRecord:
        """Return the record for an id.

        Raises:
            TaxonNotFoundError: If the id is not in the registry
        """
        try:
            return self._records[taxon_id]
        except KeyError:
            raise TaxonNotFoundError(taxon_id) from None

    def accepted_record(self, record: TaxonRecord) -> Optional[TaxonRecord]:
        """Return the accepted record a synonym points to.

        Returns None when the record is already accepted or the link dangles.
        """
        if not record.accepted_entity_id:
            return None
        return self._records.get(record.accepted_entity_id)

    def dangling_accepted_ids(self) -> List[str]:
        """Return ids of records whose accepted-name link doesn't resolve."""
        return [
            record.id for record in self._records.values()
            if record.accepted_entity_id and record.accepted_entity_id not in self._records
        ]

    @classmethod
    def from_records(cls, records: Iterable[TaxonRecord]) -> "TaxonRegistry":
        """Build a registry from TaxonRecord objects."""
        registry = cls(records)
        logger.debug(f"Built taxon registry with {len(registry):,} taxa")
        return registry

    @classmethod
    def from_raw_taxa(cls, raw_taxa: Mapping) -> "TaxonRegistry":
        """Build a registry from the compact positional table format.

        Each value is a list::

            [name_string, canonical (0 = same as name_string), hybrid_canonical,
             accepted_entity_id, qualifier, authority, vernacular, vernacular_root,
             used (0/1), min_rank_sort, parent_ids, bad_vernacular]

        Trailing columns may be omitted.

        Args:
            raw_taxa: Mapping of taxon id to its positional row

        Returns:
            A new TaxonRegistry
        """
        return cls.from_records(
            record_from_raw_row(str(taxon_id), row) for taxon_id, row in raw_taxa.items()
        )


def _column(row: Sequence[Any], index: int, default: Any = None) -> Any:
    if index < len(row) and row[index] is not None:
        return row[index]
    return default


def _rank_sort(taxon_id: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise TaxonDataFormatError(
            f"Taxon '{taxon_id}' has an invalid rank sort value: {value!r}"
        ) from None


def record_from_raw_row(taxon_id: str, row: Sequence[Any]) -> TaxonRecord:
    """Convert one compact positional row into a TaxonRecord."""
    if not isinstance(row, (list, tuple)) or not row:
        raise TaxonDataFormatError(f"Taxon '{taxon_id}' has no name string")

    canonical = _column(row, RAW_CANONICAL, RAW_CANONICAL_SAME_AS_NAME)
    accepted = _column(row, RAW_ACCEPTED_ENTITY_ID, "")

    return TaxonRecord(
        id=taxon_id,
        name_string=str(row[RAW_NAME_STRING]),
        canonical_name=None if canonical in (RAW_CANONICAL_SAME_AS_NAME, "") else str(canonical),
        hybrid_canonical_name=_column(row, RAW_HYBRID_CANONICAL, ""),
        accepted_entity_id=str(accepted) if accepted else None,
        qualifier=_column(row, RAW_QUALIFIER, ""),
        authority=_column(row, RAW_AUTHORITY, ""),
        vernacular_name=_column(row, RAW_VERNACULAR, ""),
        vernacular_root=_column(row, RAW_VERNACULAR_ROOT, ""),
        used=_column(row, RAW_USED, 0) == 1,
        min_rank_sort=_rank_sort(taxon_id, _column(row, RAW_MIN_RANK, 0)),
        bad_vernacular=bool(_column(row, RAW_BAD_VERNACULAR, False)),
        parent_ids=tuple(str(parent) for parent in _column(row, RAW_PARENT_IDS, ())),
    )
