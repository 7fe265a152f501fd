"""SQLAlchemy ORM models for quote persistence."""

from __future__ import annotations

from sqlalchemy import Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class QuoteTable(Base):
    """Quote table.

    The id is assigned by the database and grows with insertion order,
    which is the display order (newest first).
    """

    __tablename__ = "quotes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Free text, never parsed
    date: Mapped[str] = mapped_column(Text, nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)
