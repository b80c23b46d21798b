"""
Error taxonomy for the ingestion pipeline.

Every failure the pipeline knows how to describe is an AlbumTrackerError.
Errors flagged as systemic would fail every remaining file in the same way,
so the batch coordinator stops on them instead of moving on.
"""

from __future__ import annotations


class AlbumTrackerError(Exception):
    """Base exception for all pipeline errors."""

    systemic: bool = False


class AssetIOError(AlbumTrackerError):
    """Raised when an image file cannot be read or renamed."""


class DecodeError(AlbumTrackerError):
    """Raised when a file is not a decodable image."""


class AuthError(AlbumTrackerError):
    """Raised when credentials are missing or rejected."""

    systemic = True


class NetworkError(AlbumTrackerError):
    """Raised when a remote service cannot be reached or answers with an error status."""


class ParseError(AlbumTrackerError):
    """Raised when a remote service answers without the expected fields."""


class UnconfirmedWriteError(ParseError):
    """
    Raised when a collection write was accepted but its response is unreadable.

    The remote entry most likely exists; nothing is rolled back.
    """

    def __init__(self, release_id: int, detail: str) -> None:
        super().__init__(
            f"Release {release_id} was submitted to the collection but the "
            f"response could not be read ({detail}); check the collection "
            f"before retrying to avoid a duplicate entry."
        )
        self.release_id = release_id


class EmptyCandidatesError(AlbumTrackerError):
    """Raised when a catalog search yields nothing to choose from."""


class InputError(AlbumTrackerError):
    """Raised when the operator's selection is not a valid candidate index."""
