"""
Read side of the kernel.

Selectors answer questions about lots, their composition and their
genealogy.  They never add, delete, flush or commit, and they hand back
frozen records from ``trace_kernel.domain.types`` rather than ORM rows,
so callers cannot mutate the store through them.
"""

from abc import ABC
from typing import ClassVar, Generic, TypeVar

from sqlalchemy.orm import Session

from trace_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only queries over one primary model; the caller owns the session."""

    model: ClassVar[type[Base]]

    def __init__(self, session: Session):
        self.session = session

    def _row(self, pk: int) -> ModelType | None:
        return self.session.get(self.model, pk)
