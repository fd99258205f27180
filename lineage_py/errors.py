"""Exceptions raised by the lineage query services and record stores."""
from __future__ import annotations


class LineageError(Exception):
    pass


class NotFoundError(LineageError, LookupError):
    """The root person of a query does not exist in the record store."""

    def __init__(self, person_id: str) -> None:
        super().__init__(f"Person {person_id} not found")
        self.person_id = person_id


class StoreError(LineageError):
    """A record store lookup failed. The original exception is chained."""


class QueryCancelled(LineageError):
    """The caller cancelled a traversal before it finished."""
