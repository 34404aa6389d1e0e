"""
ORM-level write-once enforcement.

Two fields are frozen once they reach the database:

Entity       | Frozen field | Why
-------------|--------------|------------------------------------------------
Lot          | code         | Printed on labels; the paper trail points at it
Elaboration  | name         | Lot codes and labels are issued under this name

SQLAlchemy fires ``before_update`` for every dirty instance during flush.
The listeners below inspect attribute history and raise
``ImmutabilityViolationError`` before any SQL is emitted, so the whole
flush (and the caller's transaction) is aborted.

Whitespace-only edits to an elaboration name are allowed: the comparison
is made on the stripped values.

Usage:

    from trace_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # init_engine_from_url() does it
"""

from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history

from trace_kernel.exceptions import ImmutabilityViolationError
from trace_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _previous_value(target, attribute: str):
    history = get_history(target, attribute)
    if not history.has_changes() or not history.deleted:
        return None, None
    return history.deleted[0], history.added[0] if history.added else None


def _check_lot_code_immutability(mapper, connection, target):
    """Block changes of a lot code once it has been assigned."""
    old, new = _previous_value(target, "code")
    if old is None or old == new:
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "Lot",
            "entity_id": str(target.id),
            "field": "code",
            "old_value": old,
            "new_value": new,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="Lot",
        entity_id=str(target.id),
        reason=f"lot code '{old}' is write-once",
    )


def _check_elaboration_rename(mapper, connection, target):
    """Block renaming an elaboration after creation."""
    old, new = _previous_value(target, "name")
    if old is None:
        return
    if (new or "").strip() == old.strip():
        return

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "Elaboration",
            "entity_id": str(target.id),
            "field": "name",
            "old_value": old,
            "new_value": new,
        },
    )
    raise ImmutabilityViolationError(
        entity_type="Elaboration",
        entity_id=str(target.id),
        reason=f"elaboration '{old}' cannot be renamed",
    )


def _listeners():
    from trace_kernel.models.catalog import Elaboration
    from trace_kernel.models.lot import Lot

    return (
        (Lot, "before_update", _check_lot_code_immutability),
        (Elaboration, "before_update", _check_elaboration_rename),
    )


def register_immutability_listeners() -> None:
    """Register the write-once listeners (idempotent)."""
    for target, identifier, fn in _listeners():
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)
    logger.debug("immutability_listeners_registered")

