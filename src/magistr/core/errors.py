"""Backing store error taxonomy.

- StoreUnavailable: no connection could be obtained (connect failure,
  pool exhaustion timeout, dropped connection)
- QueryFailed: the store answered a statement with an error

Absence of a row is not an error; accessors return None for it.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base class for backing store failures."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class StoreUnavailable(StoreError):
    """Connection or pool acquisition failed."""


class QueryFailed(StoreError):
    """A statement failed after a connection was acquired."""
