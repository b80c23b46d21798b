"""
Recognition client for Google Cloud Vision web detection.

Sends the encoded photo with a single WEB_DETECTION feature and keeps only
the first best-guess label, e.g. "abbey road vinyl".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from albumtracker.config import VISION_ENDPOINT
from albumtracker.credentials import TokenSource
from albumtracker.errors import ParseError
from albumtracker.imaging import EncodedImage
from albumtracker.transport import request_json


def build_annotate_request(image: EncodedImage) -> dict[str, Any]:
    """Build the images:annotate body asking for one web best guess."""
    return {
        "requests": [
            {
                "image": {"content": image.to_base64()},
                "features": [{"type": "WEB_DETECTION", "maxResults": 1}],
            }
        ]
    }


def extract_best_guess(payload: dict[str, Any]) -> str:
    """
    Return ``responses[0].webDetection.bestGuessLabels[0].label``.

    Raises:
        ParseError: If the service reported an error for the image, or answered
            without a non-empty best-guess label
    """
    responses = payload.get("responses")
    if not isinstance(responses, list) or not responses:
        raise ParseError("Vision response has no 'responses' entries")
    first = responses[0] or {}
    if not isinstance(first, dict):
        raise ParseError(f"Vision response entry is {type(first).__name__}, expected an object")

    error = first.get("error")
    if error:
        message = error.get("message", error) if isinstance(error, dict) else error
        raise ParseError(f"Vision could not annotate the image: {message}")

    web = first.get("webDetection") or {}
    if not isinstance(web, dict):
        raise ParseError(f"Vision webDetection is {type(web).__name__}, expected an object")
    labels = web.get("bestGuessLabels") or []
    if not isinstance(labels, list):
        raise ParseError(f"Vision bestGuessLabels is {type(labels).__name__}, expected a list")
    label = labels[0].get("label") if labels and isinstance(labels[0], dict) else None
    if not isinstance(label, str) or not label.strip():
        raise ParseError("Vision answered but offered no best-guess label for the image")
    return label.strip()


@dataclass
class VisionClient:
    """Blocking client for the Vision images:annotate endpoint."""

    http: httpx.Client
    tokens: TokenSource
    endpoint: str = VISION_ENDPOINT
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("albumtracker.vision"))

    def recognize(self, image: EncodedImage) -> str:
        """
        Return the best-guess label for an encoded image.

        Raises:
            AuthError: If no token can be obtained or the token is rejected
            NetworkError: If Vision cannot be reached or returns an error status
            ParseError: If Vision has no best guess for the image
        """
        token = self.tokens.token()
        payload = request_json(
            self.http,
            "POST",
            self.endpoint,
            service="Google Vision",
            json=build_annotate_request(image),
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": f"Bearer {token}",
            },
        )
        label = extract_best_guess(payload)
        self.logger.info("label_recognized", extra={"path": str(image.source), "label": label})
        return label
