"""Shared fixtures: generated images, settings and stubbed remote services."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterator

import httpx
import pytest
from PIL import Image

from albumtracker.config import Settings


ABBEY_ROAD_ENTRY = {
    "instance_id": 987654,
    "basic_information": {
        "id": 123,
        "title": "Abbey Road",
        "artists": [{"name": "The Beatles", "id": 82730}],
        "formats": [{"name": "Vinyl", "qty": "1", "descriptions": ["LP", "Album"]}],
    },
}


class StaticTokens:
    """Token source stub that never shells out."""

    def __init__(self, token: str = "ya29.test-token") -> None:
        self.value = token
        self.calls = 0

    def token(self) -> str:
        self.calls += 1
        return self.value


class FakeServices:
    """
    httpx.MockTransport handler standing in for Vision and Discogs.

    Routes by host and path and records every request it sees.
    """

    def __init__(
        self,
        *,
        label: str | None = "Abbey Road",
        search_results: list[dict[str, Any]] | None = None,
        versions: list[dict[str, Any]] | None = None,
        add_response: dict[str, Any] | None = None,
        vision_status: int = 200,
    ) -> None:
        self.label = label
        self.search_results = (
            search_results
            if search_results is not None
            else [{"id": 123, "type": "release", "title": "Abbey Road"}]
        )
        self.versions = versions or []
        self.add_response = add_response if add_response is not None else ABBEY_ROAD_ENTRY
        self.vision_status = vision_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host == "vision.googleapis.com":
            if self.vision_status != 200:
                return httpx.Response(self.vision_status, text="denied")
            web: dict[str, Any] = {}
            if self.label is not None:
                web["bestGuessLabels"] = [{"label": self.label, "languageCode": "en"}]
            return httpx.Response(200, json={"responses": [{"webDetection": web}]})

        if path == "/database/search":
            return httpx.Response(200, json={"results": self.search_results})
        if path.startswith("/masters/") and path.endswith("/versions"):
            return httpx.Response(200, json={"versions": self.versions})
        if "/collection/folders/" in path and request.method == "POST":
            return httpx.Response(201, json=self.add_response)
        return httpx.Response(404, json={"message": "not found"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a solid-color image file and return its path."""

    def _make(
        name: str = "cover.jpg",
        size: tuple[int, int] = (640, 480),
        mode: str = "RGB",
        fmt: str | None = None,
        **save_kwargs: Any,
    ) -> Path:
        path = tmp_path / name
        color = (200, 30, 30, 255)[: len(mode)] if mode in ("RGB", "RGBA") else 128
        Image.new(mode, size, color).save(path, format=fmt, **save_kwargs)
        return path

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        google_application_credentials="/etc/gcp/service-account.json",
        gcp_sdk="/usr/bin/gcloud",
        discogs_user="digger",
        discogs_token="secret",
        fail_fast=False,
    )


@pytest.fixture
def tokens() -> StaticTokens:
    return StaticTokens()


@pytest.fixture
def services() -> FakeServices:
    return FakeServices()


@pytest.fixture
def http_for() -> Iterator[Callable[[FakeServices], httpx.Client]]:
    """Build an httpx.Client whose requests are answered by a FakeServices handler."""
    clients: list[httpx.Client] = []

    def _build(handler: FakeServices) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _build
    for client in clients:
        client.close()
