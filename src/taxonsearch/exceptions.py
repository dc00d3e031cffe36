"""Exceptions raised by taxonsearch.

An empty result list is a normal outcome and is never signalled with an
exception. Everything here indicates a fault the caller must see.
"""

from typing import Optional


class TaxonSearchError(Exception):
    """Base class for all taxonsearch errors."""


class RegistryNotInitialisedError(TaxonSearchError):
    """A search engine was created without a populated taxon registry."""


class TaxonNotFoundError(TaxonSearchError, KeyError):
    """A taxon id does not exist in the registry."""

    def __init__(self, taxon_id: str):
        self.taxon_id = taxon_id
        super().__init__(f"Taxon id '{taxon_id}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class TaxonIntegrityError(TaxonSearchError):
    """A record's accepted-name link does not resolve in the registry.

    This points at a corrupt data load, so it is raised as soon as it is
    detected instead of dropping the row.
    """

    def __init__(self, taxon_id: str, accepted_entity_id: Optional[str]):
        self.taxon_id = taxon_id
        self.accepted_entity_id = accepted_entity_id
        super().__init__(
            f"Failed to find taxon for accepted entity id '{accepted_entity_id}' "
            f"(referenced by taxon '{taxon_id}')"
        )


class TaxonDataFormatError(TaxonSearchError, ValueError):
    """A taxon table could not be read into a registry."""
