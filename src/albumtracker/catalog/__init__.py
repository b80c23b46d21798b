"""
Discogs catalog access and release disambiguation.

Basic usage:
    >>> from albumtracker.catalog import DiscogsClient, disambiguate
    >>>
    >>> catalog = DiscogsClient(http=client, user="digger", token="...")
    >>> selection = disambiguate(catalog.search("abbey road vinyl"))
    >>> entry = catalog.add_to_collection(selection)
    >>> print(entry.describe())
"""

from .models import (
    CatalogCandidate,
    CollectionEntry,
    Selection,
)
from .client import (
    DiscogsClient,
    master_id_of,
)
from .disambiguation import (
    disambiguate,
    parse_choice,
    render_candidates,
)

__all__ = [
    # Models
    "CatalogCandidate",
    "CollectionEntry",
    "Selection",
    # Client
    "DiscogsClient",
    "master_id_of",
    # Disambiguation
    "disambiguate",
    "parse_choice",
    "render_candidates",
]
