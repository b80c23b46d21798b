"""
Pydantic models for Discogs catalog and collection data.

These models cover the subset of the Discogs API that the ingestion pipeline
reads: search results, master versions and the collection-add response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _join_formats(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if v]
        return ", ".join(parts) or None
    return str(value) or None


class CatalogCandidate(BaseModel):
    """
    One release returned by a catalog search.

    Search results and master versions describe releases with slightly
    different fields; both are normalized onto this model.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str = ""
    country: str | None = None
    released: str | None = None
    format: str | None = None

    @field_validator("format", mode="before")
    @classmethod
    def _flatten_format(cls, value: Any) -> str | None:
        return _join_formats(value)

    @field_validator("released", mode="before")
    @classmethod
    def _stringify_released(cls, value: Any) -> str | None:
        if value in (None, "", 0, "0"):
            return None
        return str(value)

    @classmethod
    def from_version(cls, data: dict[str, Any]) -> "CatalogCandidate":
        """Build from an entry of ``/masters/{id}/versions``."""
        return cls.model_validate(data)

    @classmethod
    def from_search_result(cls, data: dict[str, Any]) -> "CatalogCandidate":
        """Build from an entry of ``/database/search`` (year stands in for a release date)."""
        return cls.model_validate({**data, "released": data.get("released") or data.get("year")})


@dataclass(frozen=True)
class Selection:
    """
    The operator's disambiguation choice.

    Attributes:
        index: Position of the chosen candidate in the presented list
        candidate: The chosen candidate
    """

    index: int
    candidate: CatalogCandidate

    @property
    def release_id(self) -> int:
        return self.candidate.id


class _Named(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class BasicInformation(BaseModel):
    """The ``basic_information`` block of a collection item."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    title: str
    artists: list[_Named] = Field(min_length=1)
    formats: list[_Named] = Field(min_length=1)


class CollectionEntry(BaseModel):
    """A release as it now exists in the operator's collection."""

    model_config = ConfigDict(frozen=True)

    release_id: int
    artist: str
    title: str
    format: str
    instance_id: int | None = None

    @classmethod
    def from_response(cls, release_id: int, data: dict[str, Any]) -> "CollectionEntry":
        """
        Parse a collection-add response.

        Raises:
            pydantic.ValidationError: If ``basic_information`` is missing or incomplete
        """
        info = BasicInformation.model_validate(data.get("basic_information"))
        return cls(
            release_id=info.id or release_id,
            artist=info.artists[0].name,
            title=info.title,
            format=info.formats[0].name,
            instance_id=data.get("instance_id"),
        )

    def describe(self) -> str:
        return f"{self.artist} — {self.title} ({self.format})"
