"""
Write side of the kernel.

A service gets the caller's ``Session`` and a ``Clock``.  It flushes so
that generated ids and constraint errors surface immediately, and it may
open and roll back savepoints of its own, but it never commits: the
outer transaction belongs to ``session_scope()``, the CLI or the test
fixture that created the session.  Row timestamps come from the clock.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from trace_kernel.db.base import Base
from trace_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """Common constructor for services writing ``ModelType`` rows."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
