"""taxonsearch: ranked lookup of taxon names for autocomplete.

Resolves free text (scientific names with abbreviated genera, hybrid
formulae and informal qualifiers, or vernacular names) into a short,
deterministically ordered list of entries from an in-memory taxon checklist.
"""

__version__ = "0.1.0"

from taxonsearch.config import SearchConfig
from taxonsearch.exceptions import (
    RegistryNotInitialisedError,
    TaxonDataFormatError,
    TaxonIntegrityError,
    TaxonNotFoundError,
    TaxonSearchError,
)
from taxonsearch.formatter import Formatter
from taxonsearch.normalizer import normalize_taxon_name
from taxonsearch.registry import TaxonRegistry
from taxonsearch.search import TaxonSearch
from taxonsearch.types.data_classes import (
    MatchCandidate,
    ResultRow,
    TaxonRecord,
    TaxonSelection,
)

__all__ = [
    "SearchConfig",
    "TaxonSearch",
    "TaxonRegistry",
    "Formatter",
    "normalize_taxon_name",
    "TaxonRecord",
    "MatchCandidate",
    "ResultRow",
    "TaxonSelection",
    "TaxonSearchError",
    "RegistryNotInitialisedError",
    "TaxonIntegrityError",
    "TaxonNotFoundError",
    "TaxonDataFormatError",
]
