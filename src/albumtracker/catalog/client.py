"""
Discogs catalog search and collection writer.

Discogs models releases hierarchically: a master groups every pressing of an
album, and only the pressings (versions) can be added to a collection. A
search that lands on a master is therefore resolved with a second lookup of
its versions, filtered to the preferred physical format and newest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from albumtracker.config import DISCOGS_API, MAX_CANDIDATES
from albumtracker.errors import ParseError, UnconfirmedWriteError
from albumtracker.transport import request_json

from .models import CatalogCandidate, CollectionEntry, Selection

DEFAULT_FOLDER_ID = 1  # "Uncategorized"


def master_id_of(result: dict[str, Any]) -> int | None:
    """
    Return the master grouping id a search result belongs to, if any.

    Raises:
        ParseError: If the result is not an object or its id is not an integer
    """
    if not isinstance(result, dict):
        raise ParseError(f"Discogs search result is {type(result).__name__}, expected an object")
    master_id = result.get("master_id")
    if not master_id and result.get("type") == "master":
        master_id = result.get("id")
    if not master_id:
        return None
    try:
        return int(master_id)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Discogs master id {master_id!r} is not an integer") from e


def _candidates(
    entries: list[Any],
    build: Callable[[dict[str, Any]], CatalogCandidate],
    *,
    limit: int,
    source: str,
) -> list[CatalogCandidate]:
    out: list[CatalogCandidate] = []
    for i, entry in enumerate(entries):
        if len(out) >= limit:
            break
        if not isinstance(entry, dict):
            raise ParseError(f"Discogs {source}[{i}] is {type(entry).__name__}, expected an object")
        try:
            out.append(build(entry))
        except ValidationError as e:
            raise ParseError(f"Discogs {source}[{i}] is not a usable release: {e}") from e
    return out


@dataclass
class DiscogsClient:
    """
    Blocking client for the Discogs database and collection endpoints.

    Attributes:
        http: Shared HTTP client
        user: Discogs username owning the collection
        token: Personal access token
        folder_id: Collection folder new releases are added to
        preferred_format: Versions filter (e.g. "Vinyl")
        preferred_country: Optional versions filter (e.g. "UK")
        max_candidates: Upper bound on candidates returned by search
    """

    http: httpx.Client
    user: str
    token: str
    folder_id: int = DEFAULT_FOLDER_ID
    preferred_format: str | None = "Vinyl"
    preferred_country: str | None = None
    max_candidates: int = MAX_CANDIDATES
    base_url: str = DISCOGS_API
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("albumtracker.catalog"))

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": f"AlbumTracker/{self.user}",
            "Authorization": f"Discogs token={self.token}",
            "Content-Type": "application/json; charset=utf-8",
        }

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        return request_json(
            self.http,
            "GET",
            f"{self.base_url}{path}",
            service="Discogs",
            params=params,
            headers=self._headers(),
        )

    def search(self, label: str) -> list[CatalogCandidate]:
        """
        Find releases matching a free-text label.

        Returns:
            At most ``max_candidates`` candidates in Discogs ranking order;
            empty when nothing matched

        Raises:
            AuthError, NetworkError: On request failure
            ParseError: If a result lacks a release id
        """
        limit = min(self.max_candidates, MAX_CANDIDATES)
        data = self._get("/database/search", {"q": label})
        results = data.get("results")
        if not isinstance(results, list):
            raise ParseError("Discogs search response has no 'results' list")
        if not results:
            self.logger.info("candidates_found", extra={"label": label, "count": 0})
            return []

        master_id = master_id_of(results[0])
        if master_id is not None:
            candidates = self.versions(master_id, limit=limit)
        else:
            releases = [
                r for r in results if not isinstance(r, dict) or r.get("type", "release") == "release"
            ]
            candidates = _candidates(
                releases, CatalogCandidate.from_search_result, limit=limit, source="results"
            )

        self.logger.info(
            "candidates_found",
            extra={"label": label, "master_id": master_id, "count": len(candidates)},
        )
        return candidates

    def versions(self, master_id: int, *, limit: int = MAX_CANDIDATES) -> list[CatalogCandidate]:
        """List concrete releases of a master, newest first, in the preferred format."""
        params: dict[str, Any] = {
            "sort": "released",
            "sort_order": "desc",
            "per_page": limit,
        }
        if self.preferred_format:
            params["format"] = self.preferred_format
        if self.preferred_country:
            params["country"] = self.preferred_country

        data = self._get(f"/masters/{master_id}/versions", params)
        versions = data.get("versions")
        if not isinstance(versions, list):
            raise ParseError(f"Discogs master {master_id} response has no 'versions' list")
        return _candidates(versions, CatalogCandidate.from_version, limit=limit, source="versions")

    def add_to_collection(self, selection: Selection) -> CollectionEntry:
        """
        Add the selected release to the operator's collection folder.

        The write is not idempotent: posting the same release twice creates
        two collection instances.

        Raises:
            AuthError, NetworkError: If the write was not accepted
            UnconfirmedWriteError: If the write was accepted but the response
                cannot be read
        """
        release_id = selection.release_id
        url = (
            f"{self.base_url}/users/{self.user}/collection/folders/"
            f"{self.folder_id}/releases/{release_id}"
        )
        try:
            data = request_json(self.http, "POST", url, service="Discogs", headers=self._headers())
        except ParseError as e:
            raise UnconfirmedWriteError(release_id, str(e)) from e

        try:
            entry = CollectionEntry.from_response(release_id, data)
        except ValidationError as e:
            raise UnconfirmedWriteError(release_id, "missing basic_information") from e

        self.logger.info(
            "collection_entry_created",
            extra={
                "release_id": entry.release_id,
                "instance_id": entry.instance_id,
                "folder_id": self.folder_id,
            },
        )
        return entry
