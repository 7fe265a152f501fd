"""Quote board domain models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class QuoteModel(BaseModel):
    """Base model for quote board values.

    Values are immutable once built; the date is free text and is never
    parsed.
    """

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class NewQuote(QuoteModel):
    """A quote that has not been stored yet."""

    date: str = Field(description="Free-text date, stored verbatim")
    text: str = Field(description="Quote body")


class Quote(QuoteModel):
    """A stored quote."""

    id: int = Field(description="Store-assigned identifier")
    date: str
    text: str
