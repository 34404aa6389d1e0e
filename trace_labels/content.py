"""
Label content model -- normalizes a loosely typed label request.

Responsibility:
    Converts the mapping that arrives from a form post, a JSON file or
    ``LabelService.request_for_lot`` into a strict ``LabelContent`` with
    every field resolved: text normalized, expiry date computed, default
    conservation text applied.

Architecture position:
    Labels > Content -- pure, zero I/O.  The current date and the defaults
    are explicit parameters so the result is deterministic.

Accepted keys (first present wins):

    Field              | Keys
    -------------------|---------------------------------------------------
    product_name       | product_name, nombreLb, producto
    ingredients        | ingredients, ingredientesLb, ingredientes
    allergens          | allergens, alergenosLb, alergenos
    lot_code           | lot_code, loteCodigo, lote
    expiry_date        | expiry_date, fechaCaducidad
    conservation       | conservation, conservacionLb, conservacion
    elaboration_type   | elaboration_type, tipoElaboracion
    elaboration_date   | elaboration_date, fechaElaboracion
    days_valid         | days_valid

Failure modes:
    - LabelValidationError: the request is not a mapping, or days_valid is
      not integer-like.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from trace_kernel.domain.types import ElaborationType
from trace_kernel.exceptions import LabelValidationError

DATE_FORMAT = "%d/%m/%Y"
DEFAULT_CONSERVATION = "CONSERVAR EN UN LUGAR FRESCO Y SECO"
DEFAULT_DAYS_VALID = 2

_ALIASES: dict[str, tuple[str, ...]] = {
    "product_name": ("product_name", "nombreLb", "producto"),
    "ingredients": ("ingredients", "ingredientesLb", "ingredientes"),
    "allergens": ("allergens", "alergenosLb", "alergenos"),
    "lot_code": ("lot_code", "loteCodigo", "lote"),
    "expiry_date": ("expiry_date", "fechaCaducidad"),
    "conservation": ("conservation", "conservacionLb", "conservacion"),
    "elaboration_type": ("elaboration_type", "tipoElaboracion"),
    "elaboration_date": ("elaboration_date", "fechaElaboracion"),
    "days_valid": ("days_valid",),
}


@dataclass(frozen=True)
class LabelContent:
    """Fully resolved label fields, ready for layout."""

    product_name: str
    ingredients: str
    allergens: str
    lot_code: str
    expiry: str
    conservation: str
    elaboration_type: Any
    elaboration_date: str

    @property
    def footer_type(self) -> ElaborationType:
        """Type used to pick the footer; unknown values render as ELABORATION."""
        return ElaborationType.coerce(self.elaboration_type)


def _lookup(request: Mapping[str, Any], field: str) -> Any:
    for key in _ALIASES[field]:
        if key in request and request[key] is not None:
            return request[key]
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if str(item).strip())
    if isinstance(value, (date, datetime)):
        return format_date(value)
    return str(value).strip()


def format_date(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DATE_FORMAT)


def _days_valid(value: Any, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise LabelValidationError("days_valid", "expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise LabelValidationError("days_valid", f"expected an integer, got {value!r}")


def build_label_content(
    request: Mapping[str, Any],
    *,
    today: date,
    default_days_valid: int = DEFAULT_DAYS_VALID,
    default_conservation: str = DEFAULT_CONSERVATION,
) -> LabelContent:
    """
    Normalize a label request.

    Args:
        request: Label request mapping (see module docstring for keys).
        today: Date the expiry is computed from when none is given.
        default_days_valid: Shelf life when the request has no days_valid.
        default_conservation: Text used when conservation is blank.

    Returns:
        LabelContent with product name and allergens uppercased, the rest
        stripped, and the expiry formatted ``dd/mm/YYYY`` when computed.
    """
    if not isinstance(request, Mapping):
        raise LabelValidationError(
            "request", f"expected a mapping, got {type(request).__name__}"
        )

    days = _days_valid(_lookup(request, "days_valid"), default_days_valid)
    expiry = _text(_lookup(request, "expiry_date"))
    if not expiry:
        try:
            expiry = format_date(today + timedelta(days=days))
        except OverflowError:
            raise LabelValidationError(
                "days_valid", f"expiry {days} days after {today} is out of range"
            )

    conservation = _text(_lookup(request, "conservation")) or default_conservation.strip()

    raw_type = _lookup(request, "elaboration_type")
    if isinstance(raw_type, str):
        raw_type = raw_type.strip()

    return LabelContent(
        product_name=_text(_lookup(request, "product_name")).upper(),
        ingredients=_text(_lookup(request, "ingredients")),
        allergens=_text(_lookup(request, "allergens")).upper(),
        lot_code=_text(_lookup(request, "lot_code")),
        expiry=expiry,
        conservation=conservation,
        elaboration_type=int(ElaborationType.ELABORATION) if raw_type is None else raw_type,
        elaboration_date=_text(_lookup(request, "elaboration_date")),
    )
