"""
Module: trace_kernel.selectors.catalog_selector
Responsibility: Read-only queries over elaborations, ingredients and
    allergens, including the allergen roll-up for a lot's composition.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import select

from trace_kernel.domain.types import ElaborationRecord
from trace_kernel.exceptions import ElaborationNotFoundError
from trace_kernel.models.catalog import (
    Allergen,
    Elaboration,
    Ingredient,
    IngredientAllergen,
)
from trace_kernel.models.lot import CompositionEntry
from trace_kernel.selectors.base import BaseSelector


class CatalogSelector(BaseSelector[Elaboration]):
    """Selector for catalog lookups."""

    model = Elaboration

    def get_elaboration(self, elaboration_id: int) -> ElaborationRecord:
        """
        Raises:
            ElaborationNotFoundError: If the elaboration does not exist.
        """
        elaboration = self._row(elaboration_id)
        if elaboration is None:
            raise ElaborationNotFoundError(elaboration_id)
        return elaboration.to_dto()

    def list_elaborations(self) -> list[ElaborationRecord]:
        rows = self.session.execute(
            select(Elaboration).order_by(Elaboration.name)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def ingredient_allergens(self, ingredient_id: int) -> list[str]:
        """Allergen names of one ingredient, alphabetical."""
        return list(
            self.session.execute(
                select(Allergen.name)
                .join(IngredientAllergen, IngredientAllergen.allergen_id == Allergen.id)
                .where(IngredientAllergen.ingredient_id == ingredient_id)
                .order_by(Allergen.name)
            ).scalars().all()
        )

    def allergens_for_lot(self, lot_id: int) -> list[str]:
        """Distinct allergen names across a lot's composition, alphabetical."""
        return list(
            self.session.execute(
                select(Allergen.name)
                .join(IngredientAllergen, IngredientAllergen.allergen_id == Allergen.id)
                .join(Ingredient, Ingredient.id == IngredientAllergen.ingredient_id)
                .join(CompositionEntry, CompositionEntry.ingredient_id == Ingredient.id)
                .where(CompositionEntry.lot_id == lot_id)
                .distinct()
                .order_by(Allergen.name)
            ).scalars().all()
        )
