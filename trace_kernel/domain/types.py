"""
trace_kernel.domain.types -- Pure frozen dataclasses for lots and genealogy.

ZERO I/O.  Loosely typed payloads (form posts, JSON) are converted into
these types at the ingress boundary by ``parse_lot_data`` and
``parse_composition_entry`` so that services only ever see validated
values.

Invariants enforced:
    - All DTOs are frozen dataclasses; collections are tuples.
    - Weights and temperatures are Decimal, never float.
    - A parent link is explicit: ``ParentResolution`` distinguishes "no
      parent requested", "valid parent" and "invalid parent degraded".
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum
from typing import Any

from trace_kernel.exceptions import LotValidationError

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class ElaborationType(IntEnum):
    """Process classification of an elaboration (drives the label footer)."""

    ELABORATION = 1
    ESCANDALLO = 2  # Cost-breakdown / portioning of a source ingredient
    PACKAGING = 3
    FREEZING = 4

    @classmethod
    def coerce(cls, value: Any) -> ElaborationType:
        """
        Map any value onto a type; unknown values fall back to ELABORATION.

        Strings are read up to their first non-digit, so legacy form values
        such as ``"3.0"`` or ``" 3 "`` still select Packaging.
        """
        if isinstance(value, str):
            match = _LEADING_INT.match(value)
            value = match.group(1) if match else None
        try:
            return cls(int(value))
        except (TypeError, ValueError, OverflowError):
            return cls.ELABORATION


class ParentStatus(str, Enum):
    """Outcome of validating an optional parent-lot reference."""

    NONE = "none"  # No parent requested
    VALID = "valid"  # Parent exists; lot is derived
    INVALID = "invalid"  # Parent requested but missing; degraded to no parent


@dataclass(frozen=True)
class ParentResolution:
    """Validated form of an optional parent-lot reference."""

    requested_id: int | None
    status: ParentStatus

    @property
    def parent_lot_id(self) -> int | None:
        """The reference to persist: only set when the parent exists."""
        return self.requested_id if self.status is ParentStatus.VALID else None

    @property
    def is_derived(self) -> bool:
        return self.status is ParentStatus.VALID


# =============================================================================
# Input DTOs
# =============================================================================


@dataclass(frozen=True)
class CompositionEntryInput:
    """One ingredient consumed by a lot, as supplied by the caller."""

    ingredient_id: int
    weight: Decimal = Decimal("0")
    origin_percentage: Decimal | None = None
    supplier_reference: str | None = None
    source_lot_code: str | None = None
    expiry_date: str | None = None


@dataclass(frozen=True)
class LotData:
    """Validated lot header fields."""

    elaboration_id: int
    production_date: date
    total_weight: Decimal
    weight_unit: str
    expiry_date: date | None = None
    temp_start: Decimal | None = None
    temp_end: Decimal | None = None
    parent_lot_id: int | None = None


# =============================================================================
# Output DTOs
# =============================================================================


@dataclass(frozen=True)
class CreatedLot:
    """Result of ``LotService.create_lot``."""

    lot_id: int
    code: str
    parent: ParentResolution
    entry_count: int


@dataclass(frozen=True)
class ElaborationRecord:
    """Immutable snapshot of an elaboration."""

    elaboration_id: int
    name: str
    type: ElaborationType
    viability_days: int
    yield_weight: Decimal
    description: str | None = None


@dataclass(frozen=True)
class LotRecord:
    """Immutable snapshot of a persisted lot."""

    lot_id: int
    elaboration_id: int
    code: str
    production_date: date
    expiry_date: date | None
    total_weight: Decimal
    weight_unit: str
    temp_start: Decimal | None
    temp_end: Decimal | None
    parent_lot_id: int | None
    is_derived: bool
    created_at: datetime


@dataclass(frozen=True)
class CompositionEntryRecord:
    """Immutable snapshot of a persisted composition entry."""

    entry_id: int
    lot_id: int
    ingredient_id: int | None
    ingredient_name: str
    weight: Decimal
    origin_percentage: Decimal | None
    supplier_reference: str | None
    source_lot_code: str | None
    expiry_date: str | None
    created_at: datetime


@dataclass(frozen=True)
class LotClosureRecord:
    """Immutable snapshot of a lot closure (labelling run)."""

    closure_id: int
    lot_id: int
    grams_spent: Decimal
    label_count: int
    mode: str | None
    grams_per_package: Decimal | None
    units: Decimal | None
    operator: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


# =============================================================================
# Ingress parsing
# =============================================================================


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_int(field_name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise LotValidationError(field_name, "expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise LotValidationError(field_name, f"expected an integer, got {value!r}")


def _parse_decimal(field_name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise LotValidationError(field_name, "expected a number, got a boolean")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise LotValidationError(field_name, f"expected a number, got {value!r}")
    else:
        raise LotValidationError(field_name, f"expected a number, got {value!r}")
    if not result.is_finite():
        raise LotValidationError(field_name, "must be a finite number")
    return result


def _parse_date(field_name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise LotValidationError(field_name, f"expected an ISO date, got {value!r}")
    raise LotValidationError(field_name, f"expected a date, got {value!r}")


def _required(data: Mapping[str, Any], name: str) -> Any:
    value = data.get(name)
    if _is_blank(value):
        raise LotValidationError(name, "is required")
    return value


def _optional(data: Mapping[str, Any], name: str) -> Any:
    value = data.get(name)
    return None if _is_blank(value) else value


def _optional_text(data: Mapping[str, Any], name: str) -> str | None:
    value = _optional(data, name)
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_lot_data(data: LotData | Mapping[str, Any]) -> LotData:
    """
    Convert a loosely typed lot payload into ``LotData``.

    Required: elaboration_id, production_date, total_weight, weight_unit.
    Optional: expiry_date, temp_start, temp_end, parent_lot_id.

    Raises:
        LotValidationError: naming the first offending field.
    """
    if isinstance(data, LotData):
        return data
    if not isinstance(data, Mapping):
        raise LotValidationError("lot_data", f"expected a mapping, got {type(data).__name__}")

    weight_unit = str(_required(data, "weight_unit")).strip()
    expiry = _optional(data, "expiry_date")
    temp_start = _optional(data, "temp_start")
    temp_end = _optional(data, "temp_end")
    parent = _optional(data, "parent_lot_id")

    return LotData(
        elaboration_id=_parse_int("elaboration_id", _required(data, "elaboration_id")),
        production_date=_parse_date("production_date", _required(data, "production_date")),
        total_weight=_parse_decimal("total_weight", _required(data, "total_weight")),
        weight_unit=weight_unit,
        expiry_date=_parse_date("expiry_date", expiry) if expiry is not None else None,
        temp_start=_parse_decimal("temp_start", temp_start) if temp_start is not None else None,
        temp_end=_parse_decimal("temp_end", temp_end) if temp_end is not None else None,
        parent_lot_id=_parse_int("parent_lot_id", parent) if parent is not None else None,
    )


def parse_composition_entry(
    index: int, entry: CompositionEntryInput | Mapping[str, Any],
) -> CompositionEntryInput:
    """
    Convert one loosely typed composition entry.

    Field names in errors are qualified with the entry position, e.g.
    ``composition_entries[2].ingredient_id``.
    """
    if isinstance(entry, CompositionEntryInput):
        return entry
    prefix = f"composition_entries[{index}]"
    if not isinstance(entry, Mapping):
        raise LotValidationError(prefix, f"expected a mapping, got {type(entry).__name__}")

    ingredient = entry.get("ingredient_id")
    if _is_blank(ingredient):
        raise LotValidationError(f"{prefix}.ingredient_id", "is required")

    weight = _optional(entry, "weight")
    percentage = _optional(entry, "origin_percentage")
    try:
        return CompositionEntryInput(
            ingredient_id=_parse_int("ingredient_id", ingredient),
            weight=_parse_decimal("weight", weight) if weight is not None else Decimal("0"),
            origin_percentage=(
                _parse_decimal("origin_percentage", percentage)
                if percentage is not None
                else None
            ),
            supplier_reference=_optional_text(entry, "supplier_reference"),
            source_lot_code=_optional_text(entry, "source_lot_code"),
            expiry_date=_optional_text(entry, "expiry_date"),
        )
    except LotValidationError as exc:
        raise LotValidationError(f"{prefix}.{exc.field}", exc.reason) from exc
