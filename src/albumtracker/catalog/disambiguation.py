"""
Operator disambiguation.

Recognition is probabilistic, so a human always picks the release. The first
candidate is only the catalog's best guess and is never chosen implicitly.
"""

from __future__ import annotations

from typing import Callable, Sequence

import typer

from albumtracker.errors import EmptyCandidatesError, InputError

from .models import CatalogCandidate, Selection

Prompt = Callable[[str], str]
Echo = Callable[[str], None]


def _prompt(text: str) -> str:
    # Blank answers reach parse_choice instead of re-prompting.
    return typer.prompt(text, default="", show_default=False, type=str)


def render_candidates(candidates: Sequence[CatalogCandidate]) -> list[str]:
    """Format candidates as numbered lines: title, country, release date, format."""
    lines = []
    for i, c in enumerate(candidates):
        fields = [c.title or "?", c.country or "?", c.released or "?", c.format or "?"]
        lines.append(f"  [{i}] " + " | ".join(fields))
    return lines


def parse_choice(response: str, count: int) -> int:
    """
    Parse an operator response into a candidate index.

    Raises:
        InputError: If the response is not an integer in ``[0, count)``
    """
    text = response.strip()
    try:
        index = int(text)
    except ValueError as e:
        raise InputError(f"Selection {text!r} is not a number") from e
    if not 0 <= index < count:
        raise InputError(f"Selection {index} is out of range 0..{count - 1}")
    return index


def disambiguate(
    candidates: Sequence[CatalogCandidate],
    *,
    prompt: Prompt = _prompt,
    echo: Echo = typer.echo,
) -> Selection:
    """
    Show the candidates and block until the operator picks one.

    Raises:
        EmptyCandidatesError: If there is nothing to choose from
        InputError: If the operator's answer is not a valid index
    """
    if not candidates:
        raise EmptyCandidatesError("Catalog search returned no candidates")

    echo("")
    for line in render_candidates(candidates):
        echo(line)
    index = parse_choice(prompt(f"Select release [0-{len(candidates) - 1}]"), len(candidates))
    return Selection(index=index, candidate=candidates[index])
