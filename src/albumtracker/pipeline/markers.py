"""
Processed-file markers.

A file that has been fully ingested is renamed with a suffix appended to its
whole name (``cover.jpg`` -> ``cover.jpg.processed``). The suffix is the only
state the tool persists; later batch runs skip any file that carries it.
"""

from __future__ import annotations

from pathlib import Path

from albumtracker.errors import AssetIOError

PROCESSED_SUFFIX = ".processed"


def is_processed(path: Path, suffix: str = PROCESSED_SUFFIX) -> bool:
    """
    Check whether a file already carries the processed marker.

    Example:
        >>> is_processed(Path("covers/abbey_road.jpg.processed"))
        True
        >>> is_processed(Path("covers/abbey_road.jpg"))
        False
    """
    return path.name.endswith(suffix)


def processed_path(path: Path, suffix: str = PROCESSED_SUFFIX) -> Path:
    """
    Return the path a file will have once marked processed.

    Example:
        >>> processed_path(Path("covers/abbey_road.jpg"))
        PosixPath('covers/abbey_road.jpg.processed')
    """
    return path.with_name(path.name + suffix)


def mark_processed(path: Path, suffix: str = PROCESSED_SUFFIX) -> Path:
    """
    Rename a file so future runs skip it.

    Parameters:
        path: File that completed the pipeline
        suffix: Marker appended to the file name

    Returns:
        The new path

    Raises:
        AssetIOError: If the target name is taken or the rename fails
    """
    if is_processed(path, suffix):
        return path
    target = processed_path(path, suffix)
    if target.exists():
        raise AssetIOError(f"Cannot mark {path} processed: {target.name} already exists")
    try:
        path.rename(target)
    except OSError as e:
        raise AssetIOError(f"Cannot mark {path} processed: {e}") from e
    return target
