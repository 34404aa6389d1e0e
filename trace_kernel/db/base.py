"""
Declarative base for the lot store.

Column conventions shared by every table:

    Python type | Column type               | Used for
    ------------|---------------------------|----------------------------------
    int (PK/FK) | BIGINT (INTEGER on SQLite)| surrogate ids, never reused
    Decimal     | NUMERIC(18, 3)            | weights (gram precision on kg),
                |                           | temperatures, percentages
    datetime    | TIMESTAMP WITH TIME ZONE  | created_at from the injected clock

This module is the bottom of the kernel's import graph: models import it,
it imports nothing from the kernel.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only aliases rowid (and so auto-increments) for "INTEGER PRIMARY KEY".
Identifier = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """Every model gets an auto-incremented integer ``id``."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 3),
        datetime: DateTime(timezone=True),
        int: Identifier,
    }

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)


class TrackedBase(Base):
    """
    Adds ``created_at``.

    Services fill it from their clock, never from a server default, so
    "most recent lot" ordering is reproducible in tests.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
