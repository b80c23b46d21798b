"""
Batch coordination.

Discovers the images in a directory once, skips the ones already marked
processed and feeds the rest through the worker one at a time.

Failure policy: a failed file is reported and left unmarked and the batch
moves on to the next file. Systemic errors (missing or rejected credentials)
stop the batch at once since every remaining file would fail the same way.
With ``fail_fast`` the batch also stops after the first failed file.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import httpx
import typer

from albumtracker.catalog import DiscogsClient, disambiguate
from albumtracker.config import Settings
from albumtracker.credentials import GcloudTokenSource, TokenSource
from albumtracker.errors import AssetIOError, AuthError, AlbumTrackerError
from albumtracker.transport import new_client
from albumtracker.vision import VisionClient

from .markers import is_processed
from .worker import Chooser, ProcessingResult, process_image

LOGGER = logging.getLogger("albumtracker.pipeline")


@dataclass
class BatchSummary:
    """
    Outcome of one batch run.

    Attributes:
        directory: Directory that was scanned
        discovered: Number of files found at batch start
        processed: Results of files that completed every stage
        skipped: Files already carrying the processed marker
        failed: Results of files that failed
        aborted_by: Error that stopped the batch early, if any
    """

    directory: Path
    discovered: int = 0
    processed: list[ProcessingResult] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[ProcessingResult] = field(default_factory=list)
    aborted_by: AlbumTrackerError | None = None

    @property
    def aborted(self) -> bool:
        return self.aborted_by is not None


def discover_images(directory: Path) -> list[Path]:
    """
    List candidate files in a directory, sorted by name.

    Hidden files and subdirectories are ignored. The listing is taken once;
    files added during a run are picked up by the next run.

    Raises:
        AssetIOError: If the directory cannot be listed
    """
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise AssetIOError(f"Cannot list {directory}: {e}") from e
    return sorted(
        (p for p in entries if p.is_file() and not p.name.startswith(".")),
        key=lambda p: p.name,
    )


def preflight(settings: Settings) -> None:
    """
    Fail before any network call when credential configuration is absent.

    Raises:
        AuthError: Naming every missing variable
    """
    missing = settings.missing_credentials()
    if missing:
        raise AuthError("Missing required environment variables: " + ", ".join(missing))


def build_clients(
    settings: Settings,
    http: httpx.Client,
    *,
    tokens: TokenSource | None = None,
) -> tuple[VisionClient, DiscogsClient]:
    """Create the Vision and Discogs clients sharing one HTTP client."""
    if tokens is None:
        tokens = GcloudTokenSource(
            sdk_path=settings.gcp_sdk,
            credentials_path=settings.google_application_credentials,
            logger=logging.getLogger("albumtracker.credentials"),
        )
    vision = VisionClient(http=http, tokens=tokens, endpoint=settings.vision_endpoint)
    catalog = DiscogsClient(
        http=http,
        user=settings.discogs_user or "",
        token=settings.discogs_token or "",
        folder_id=settings.discogs_folder_id,
        preferred_format=settings.preferred_format or None,
        preferred_country=settings.preferred_country or None,
        max_candidates=settings.max_candidates,
        base_url=settings.discogs_api,
    )
    return vision, catalog


def run_batch(
    directory: Path,
    settings: Settings,
    *,
    http: httpx.Client | None = None,
    tokens: TokenSource | None = None,
    choose: Chooser | None = None,
    echo: Callable[[str], None] = typer.echo,
) -> BatchSummary:
    """
    Ingest every unprocessed image in a directory.

    Parameters:
        directory: Directory holding the photos
        settings: Runtime configuration
        http: HTTP client to use (a new one is created and closed otherwise)
        tokens: Vision token source (gcloud by default)
        choose: Operator choice (interactive prompt by default)
        echo: Progress output

    Returns:
        BatchSummary

    Raises:
        AuthError: If credential configuration is missing (before any file is touched)
        AssetIOError: If the directory cannot be listed
    """
    preflight(settings)
    images = discover_images(directory)
    summary = BatchSummary(directory=directory, discovered=len(images))
    LOGGER.info("batch_started", extra={"directory": str(directory), "files": len(images)})

    if choose is None:
        choose = functools.partial(disambiguate, echo=echo)

    owns_http = http is None
    if http is None:
        http = new_client(timeout=settings.http_timeout)
    try:
        vision, catalog = build_clients(settings, http, tokens=tokens)
        for i, path in enumerate(images, start=1):
            if is_processed(path, settings.processed_suffix):
                summary.skipped.append(path)
                echo(f"⏭️  [{i}/{len(images)}] Skipping (already processed): {path.name}")
                continue

            result = process_image(
                path,
                vision=vision,
                catalog=catalog,
                choose=choose,
                echo=echo,
                max_dimension=settings.max_dimension,
                jpeg_quality=settings.jpeg_quality,
                suffix=settings.processed_suffix,
            )
            if result.success:
                summary.processed.append(result)
                echo("<<")
                continue

            summary.failed.append(result)
            stage = result.failed_at.value if result.failed_at else "?"
            echo(f"❌ {path.name} failed while {stage}: {result.error}")
            if result.entry is not None:
                echo(
                    f"   ⚠️  {result.entry.describe()} is already in the collection; "
                    f"rename {path.name} by hand before the next run to avoid a duplicate"
                )

            if result.error is not None and result.error.systemic:
                summary.aborted_by = result.error
            elif settings.fail_fast:
                summary.aborted_by = result.error
            if summary.aborted:
                LOGGER.error(
                    "batch_aborted",
                    extra={"path": str(path), "error_type": type(result.error).__name__},
                )
                break
    finally:
        if owns_http:
            http.close()

    LOGGER.info(
        "batch_finished",
        extra={
            "processed": len(summary.processed),
            "skipped": len(summary.skipped),
            "failed": len(summary.failed),
            "aborted": summary.aborted,
        },
    )
    return summary
