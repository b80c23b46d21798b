"""
albumtracker CLI

Usage:
    albumtracker DIRECTORY

Identifies every unprocessed record photo in DIRECTORY, asks which Discogs
release it is and adds that release to your collection. Configuration comes
from the environment (see albumtracker.config).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from albumtracker.config import Settings
from albumtracker.errors import AlbumTrackerError
from albumtracker.pipeline.coordinator import BatchSummary, run_batch

app = typer.Typer(add_completion=False, help="Add photographed records to a Discogs collection")


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        # Include any custom attributes passed via `extra=`.
        reserved = {
            "name","msg","args","levelname","levelno","pathname","filename","module",
            "exc_info","exc_text","stack_info","lineno","funcName","created","msecs",
            "relativeCreated","thread","threadName","processName","process","taskName",
        }
        for k, v in record.__dict__.items():
            if k in reserved or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except TypeError:
                payload[k] = repr(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str) -> logging.Logger:
    logger = logging.getLogger("albumtracker")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


LOGGER = logging.getLogger("albumtracker")


def print_summary(summary: BatchSummary) -> None:
    typer.echo(f"\n{'='*60}")
    typer.echo("📊 Summary:")
    typer.echo(f"  Files found: {summary.discovered}")
    typer.echo(f"  Added to collection: {len(summary.processed)}")
    typer.echo(f"  Skipped (already processed): {len(summary.skipped)}")
    typer.echo(f"  Failed: {len(summary.failed)}")

    if summary.failed:
        typer.echo(f"\n❌ Failed files ({len(summary.failed)}):")
        for result in summary.failed:
            stage = result.failed_at.value if result.failed_at else "?"
            typer.echo(f"  - {result.path} [{stage}] {type(result.error).__name__}: {result.error}")
            if result.entry is not None:
                typer.echo(f"    already added: {result.entry.describe()}")
    if summary.aborted:
        remaining = summary.discovered - len(summary.processed) - len(summary.skipped) - len(summary.failed)
        typer.echo(f"\n⛔ Batch stopped early; {remaining} file(s) not attempted.")


@app.command()
def run(
    directory: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Directory of record photos",
    ),
) -> None:
    """
    Identify each unprocessed photo in DIRECTORY and add the chosen release to your collection.

    Processed photos are renamed with a ".processed" suffix and skipped on later runs.

    Example:
        albumtracker ~/Pictures/records
    """
    global LOGGER

    try:
        settings = Settings()
    except ValidationError as e:
        typer.echo(f"Error: invalid configuration:\n{e}", err=True)
        raise typer.Exit(code=1)

    LOGGER = setup_logging(settings.log_level)
    LOGGER.debug(
        "settings_loaded",
        extra={
            "discogs_user": settings.discogs_user,
            "folder_id": settings.discogs_folder_id,
            "fail_fast": settings.fail_fast,
        },
    )
    directory = directory.expanduser()
    typer.echo(f"Reading images in {directory}")

    try:
        summary = run_batch(directory, settings)
    except AlbumTrackerError as e:
        typer.echo(f"❌ {type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=2 if e.systemic else 1)

    print_summary(summary)

    if summary.aborted_by is not None and summary.aborted_by.systemic:
        raise typer.Exit(code=2)
    if summary.failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
