"""Core domain types for magistr: models, results and store errors."""

from magistr.core.errors import QueryFailed, StoreError, StoreUnavailable
from magistr.core.model import NewQuote, Quote
from magistr.core.result import Outcome, Result

__all__ = [
    "NewQuote",
    "Outcome",
    "Quote",
    "QueryFailed",
    "Result",
    "StoreError",
    "StoreUnavailable",
]
