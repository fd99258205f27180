"""Helpers shared by the descendancy and pedigree builders."""
from __future__ import annotations
from typing import Any, Optional

from .errors import QueryCancelled

DEFAULT_GENERATIONS = 4
# hard ceiling on traversal depth
MAX_GENERATIONS = 10


def clamp_generations(max_generations: Optional[int]) -> int:
    """Values <= 0 (or None) mean the default; anything above the ceiling is capped."""
    if max_generations is None or max_generations <= 0:
        return DEFAULT_GENERATIONS
    return min(max_generations, MAX_GENERATIONS)


def check_cancelled(cancel_event: Any) -> None:
    """Raise QueryCancelled if the caller's event (e.g. threading.Event) is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise QueryCancelled("query cancelled")


def drop_empty(d: dict) -> dict:
    """Remove keys whose value is None, an empty string or an empty list."""
    return {k: v for k, v in d.items() if v is not None and v != "" and v != []}
