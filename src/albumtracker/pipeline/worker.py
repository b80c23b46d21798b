"""
Single image processing worker.

Runs one image through every pipeline stage in a fixed order:

    PENDING -> PREPARING -> RECOGNIZING -> SEARCHING -> DISAMBIGUATING
            -> WRITING -> MARKING -> PROCESSED

Any pipeline error moves the file to FAILED and is returned in the result
together with the stage it happened in. The file is renamed with the processed
marker only after the collection write succeeded. A failure in MARKING means
the release is already in the collection.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol, Sequence

import typer

from albumtracker.catalog import CatalogCandidate, CollectionEntry, Selection
from albumtracker.errors import AlbumTrackerError
from albumtracker.imaging import DEFAULT_JPEG_QUALITY, DEFAULT_MAX_DIMENSION, EncodedImage, prepare

from .markers import PROCESSED_SUFFIX, mark_processed

LOGGER = logging.getLogger("albumtracker.pipeline")


class Stage(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    RECOGNIZING = "recognizing"
    SEARCHING = "searching"
    DISAMBIGUATING = "disambiguating"
    WRITING = "writing"
    MARKING = "marking"
    PROCESSED = "processed"
    FAILED = "failed"


class Recognizer(Protocol):
    def recognize(self, image: EncodedImage) -> str:
        ...


class Catalog(Protocol):
    def search(self, label: str) -> list[CatalogCandidate]:
        ...

    def add_to_collection(self, selection: Selection) -> CollectionEntry:
        ...


Chooser = Callable[[Sequence[CatalogCandidate]], Selection]


@dataclass
class ProcessingResult:
    """
    Result of processing a single image.

    Attributes:
        path: Source file
        stage: PROCESSED on success, FAILED otherwise
        failed_at: Stage that raised, when failed
        label: Recognized best-guess label
        selection: Operator's choice
        entry: Collection entry created remotely
        marked_path: New file name after marking
        error: Pipeline error, when failed
        elapsed_seconds: Total processing time
    """

    path: Path
    stage: Stage = Stage.PENDING
    failed_at: Stage | None = None
    label: str | None = None
    selection: Selection | None = None
    entry: CollectionEntry | None = None
    marked_path: Path | None = None
    error: AlbumTrackerError | None = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.stage is Stage.PROCESSED


def process_image(
    path: Path,
    *,
    vision: Recognizer,
    catalog: Catalog,
    choose: Chooser,
    echo: Callable[[str], None] = typer.echo,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    suffix: str = PROCESSED_SUFFIX,
) -> ProcessingResult:
    """
    Process one image: prepare, recognize, search, disambiguate, write, mark.

    Parameters:
        path: Image file (not yet marked processed)
        vision: Recognition client
        catalog: Catalog search and collection writer
        choose: Blocking operator choice among candidates
        echo: Progress output
        max_dimension: Bounding box for the encoded image
        jpeg_quality: JPEG quality of the encoded image
        suffix: Processed marker

    Returns:
        ProcessingResult; pipeline errors are captured, anything else propagates

    Example:
        >>> result = process_image(
        ...     Path("covers/abbey_road.jpg"),
        ...     vision=vision_client,
        ...     catalog=discogs_client,
        ...     choose=disambiguate,
        ... )
        >>> result.success
        True
    """
    start_time = time.perf_counter()
    result = ProcessingResult(path=path)
    echo(f">> {path}")

    try:
        result.stage = Stage.PREPARING
        image = prepare(path, max_dimension=max_dimension, quality=jpeg_quality)

        result.stage = Stage.RECOGNIZING
        result.label = vision.recognize(image)
        echo(f"   recognized: {result.label}")

        result.stage = Stage.SEARCHING
        candidates = catalog.search(result.label)

        result.stage = Stage.DISAMBIGUATING
        result.selection = choose(candidates)
        chosen = result.selection.candidate
        echo(f"   chose [{result.selection.index}] {chosen.title} (release {chosen.id})")

        result.stage = Stage.WRITING
        result.entry = catalog.add_to_collection(result.selection)
        echo(f"   created {result.entry.describe()}")

        result.stage = Stage.MARKING
        result.marked_path = mark_processed(path, suffix)
        result.stage = Stage.PROCESSED

    except AlbumTrackerError as e:
        result.failed_at = result.stage
        result.stage = Stage.FAILED
        result.error = e

    result.elapsed_seconds = time.perf_counter() - start_time
    if result.success:
        LOGGER.info(
            "file_processed",
            extra={
                "path": str(path),
                "release_id": result.selection.release_id if result.selection else None,
                "elapsed_ms": int(result.elapsed_seconds * 1000),
            },
        )
    else:
        LOGGER.error(
            "file_failed",
            extra={
                "path": str(path),
                "stage": result.failed_at.value if result.failed_at else None,
                "error_type": type(result.error).__name__,
                "error": str(result.error),
            },
        )
    return result
