"""
Runtime configuration.

Values come from the environment (prefix ``AT_``) and an optional ``.env``
file in the working directory. Credential values are optional here so that
their absence can be reported as an AuthError by the batch preflight rather
than as a settings validation failure.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"
DISCOGS_API = "https://api.discogs.com"
MAX_CANDIDATES = 10


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AT_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    google_application_credentials: str | None = Field(
        default=None, validation_alias="GOOGLE_APPLICATION_CREDENTIALS"
    )
    gcp_sdk: str | None = None

    discogs_user: str | None = None
    discogs_token: str | None = None
    discogs_folder_id: int = 1

    preferred_format: str = "Vinyl"
    preferred_country: str | None = None
    max_candidates: int = Field(default=MAX_CANDIDATES, ge=1, le=MAX_CANDIDATES)

    max_dimension: int = Field(default=1024, ge=16)
    jpeg_quality: int = Field(default=85, ge=1, le=95)

    processed_suffix: str = ".processed"
    http_timeout: float = 30.0
    fail_fast: bool = False
    log_level: str = "INFO"

    vision_endpoint: str = VISION_ENDPOINT
    discogs_api: str = DISCOGS_API

    def missing_credentials(self) -> list[str]:
        """Return the names of required credential variables that are unset."""
        required = {
            "GOOGLE_APPLICATION_CREDENTIALS": self.google_application_credentials,
            "AT_GCP_SDK": self.gcp_sdk,
            "AT_DISCOGS_USER": self.discogs_user,
            "AT_DISCOGS_TOKEN": self.discogs_token,
        }
        return [name for name, value in required.items() if not (value or "").strip()]
