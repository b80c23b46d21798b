"""
Bearer tokens for Google Cloud Vision.

Tokens come from the Google Cloud SDK CLI:
    gcloud auth application-default print-access-token

The SDK reads the service-account file named by GOOGLE_APPLICATION_CREDENTIALS,
so that variable is exported to the subprocess explicitly.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Protocol

from albumtracker.errors import AuthError


class TokenSource(Protocol):
    """Minimal interface for something that yields bearer tokens."""

    def token(self) -> str:
        ...


@dataclass
class GcloudTokenSource:
    """Token source backed by the gcloud CLI.

    A fresh token is requested on every call; tokens expire after about an
    hour, which a long interactive batch can outlive.
    """

    sdk_path: str | None
    credentials_path: str | None
    logger: logging.Logger | None = None

    def command(self) -> list[str]:
        return [str(self.sdk_path), "auth", "application-default", "print-access-token"]

    def token(self) -> str:
        if not self.credentials_path:
            raise AuthError("GOOGLE_APPLICATION_CREDENTIALS is not set")
        if not self.sdk_path:
            raise AuthError("AT_GCP_SDK is not set (path to the gcloud executable)")

        env = {**os.environ, "GOOGLE_APPLICATION_CREDENTIALS": self.credentials_path}
        try:
            proc = subprocess.run(
                self.command(),
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
        except FileNotFoundError as e:
            raise AuthError(
                f"gcloud not found at {self.sdk_path}. Install the Google Cloud SDK "
                "and point AT_GCP_SDK at the gcloud executable."
            ) from e
        except subprocess.CalledProcessError as e:
            raise AuthError(f"gcloud failed to print an access token:\n{e.stderr or e.stdout}") from e

        token = (proc.stdout or "").strip()
        if not token:
            raise AuthError("gcloud printed an empty access token")
        if self.logger:
            self.logger.debug("gcp_token_acquired", extra={"sdk_path": self.sdk_path})
        return token
