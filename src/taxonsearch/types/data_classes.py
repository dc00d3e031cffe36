"""Core data classes for taxonsearch.

This module defines the data classes that flow through a lookup:

- TaxonRecord: one row of the taxon checklist, owned by the registry
- MatchCandidate: a record that passed some match test during one lookup
- ResultRow: a ranked, display-ready result handed back to the caller
- TaxonSelection: the value stored when a caller picks a result

Records, rows and selections are frozen. Candidates are created fresh per
lookup and discarded with it.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class TaxonRecord:
    """A single entry in the taxon checklist."""

    # Stable identifier, unique within the registry
    id: str

    # Scientific name with expanded rank abbreviations
    name_string: str

    # Alternate canonical form; None means "identical to name_string"
    canonical_name: Optional[str] = None

    # Canonical form used for hybrid display; empty when not applicable
    hybrid_canonical_name: str = ""

    # Set only on synonyms: the id of the accepted name
    accepted_entity_id: Optional[str] = None

    qualifier: str = ""
    authority: str = ""
    vernacular_name: str = ""
    vernacular_root: str = ""

    # Whether the taxon has any associated occurrence records
    used: bool = False

    # Ordinal rank value used for minimum-rank filtering
    min_rank_sort: int = 0

    # Vernacular name is unreliable and excluded from vernacular matching
    bad_vernacular: bool = False

    # Ancestor ids, used only to broaden a result to its relatives
    parent_ids: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def canonical(self) -> str:
        """Return the canonical name, falling back to the name string."""
        return self.name_string if self.canonical_name is None else self.canonical_name

    @property
    def has_distinct_canonical(self) -> bool:
        """Whether a canonical name different from the name string is stored."""
        return self.canonical_name is not None and self.canonical_name != self.name_string

    @property
    def is_accepted(self) -> bool:
        """Return whether this record is itself an accepted name."""
        return not self.accepted_entity_id

    @property
    def qualified_name(self) -> str:
        """Return the name string followed by the qualifier, if any."""
        return f"{self.name_string} {self.qualifier}" if self.qualifier else self.name_string


@dataclass
class MatchCandidate:
    """A record that passed a match test during a single lookup."""

    taxon_id: str
    exact: bool = False
    near: bool = False
    vernacular_matched: bool = False


@dataclass(frozen=True)
class ResultRow:
    """A ranked lookup result.

    The ``accepted_*`` fields are populated only when the underlying record
    is a synonym.
    """

    entity_id: str
    vernacular: str
    qname: str
    name: str
    qualifier: str
    authority: str
    uname: str
    vernacular_matched: bool = False
    exact: bool = False
    near: bool = False
    formatted: str = ""

    accepted_entity_id: Optional[str] = None
    accepted_name_string: Optional[str] = None
    accepted_qualifier: Optional[str] = None
    accepted_authority: Optional[str] = None
    accepted_qname: Optional[str] = None

    @property
    def is_synonym(self) -> bool:
        """Return whether the row redirects to an accepted name."""
        return bool(self.accepted_entity_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the row to a dictionary, omitting unset accepted-name fields."""
        result = asdict(self)
        if not self.is_synonym:
            for key in list(result):
                if key.startswith("accepted_"):
                    del result[key]
        return result


@dataclass(frozen=True)
class TaxonSelection:
    """The value stored when a result is chosen.

    ``vernacular_match`` is None for a blank selection.
    """

    taxon_id: str = ""
    taxon_name: str = ""
    vernacular_match: Optional[bool] = None

    @property
    def is_blank(self) -> bool:
        return not self.taxon_id
