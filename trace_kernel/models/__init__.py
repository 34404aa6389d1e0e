"""
trace_kernel.models -- ORM models for the catalog and lot genealogy.

Architecture: trace_kernel/models. Imports from trace_kernel.db.base only.
"""

from trace_kernel.models.catalog import (
    Allergen,
    Elaboration,
    Ingredient,
    IngredientAllergen,
)
from trace_kernel.models.lot import CompositionEntry, Lot, LotClosure

__all__ = [
    "Allergen",
    "CompositionEntry",
    "Elaboration",
    "Ingredient",
    "IngredientAllergen",
    "Lot",
    "LotClosure",
]
