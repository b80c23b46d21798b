"""
HTTP helpers shared by the Vision and Discogs clients.

Translates httpx failures into the pipeline's error taxonomy so that callers
can tell "service unreachable" apart from "service answered with nothing
usable".
"""

from __future__ import annotations

from typing import Any

import httpx

from albumtracker.errors import AuthError, NetworkError, ParseError


def new_client(*, timeout: float = 30.0) -> httpx.Client:
    """Create the HTTP client shared by every request in a batch."""
    return httpx.Client(timeout=timeout, follow_redirects=True)


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    service: str,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Send a request and return the decoded JSON object body.

    Parameters:
        client: Shared HTTP client
        method: HTTP method
        url: Absolute URL
        service: Human-readable service name used in error messages
        **kwargs: Passed through to ``httpx.Client.request``

    Returns:
        Parsed JSON object

    Raises:
        NetworkError: If the request fails in transit or returns an error status
        AuthError: If the service rejects the credentials (401/403)
        ParseError: If the body is not a JSON object
    """
    try:
        resp = client.request(method, url, **kwargs)
    except httpx.TransportError as e:
        raise NetworkError(f"{service} unreachable: {e}") from e

    if resp.status_code in (401, 403):
        raise AuthError(f"{service} rejected credentials (HTTP {resp.status_code})")
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise NetworkError(
            f"{service} error HTTP {resp.status_code}: {resp.text[:200]}"
        ) from e

    try:
        data = resp.json()
    except ValueError as e:
        raise ParseError(f"{service} returned a non-JSON body") from e
    if not isinstance(data, dict):
        raise ParseError(f"{service} returned {type(data).__name__}, expected an object")
    return data
