"""
CatalogService -- maintenance of elaborations, ingredients and allergens.

Responsibility:
    Creates the catalog rows that lots reference and links ingredients to
    the allergens they contain.  Renaming an elaboration is exposed so the
    write-once rule on its name has a single, explicit entry point.

Architecture position:
    Kernel > Services -- imperative shell.

Failure modes:
    - CatalogValidationError: blank names, negative shelf life.
    - ElaborationNotFoundError / IngredientNotFoundError /
      AllergenNotFoundError: unknown ids.
    - ImmutabilityViolationError: rename of a persisted elaboration
      (raised at flush by db/immutability.py).
"""

from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select

from trace_kernel.domain.types import ElaborationType
from trace_kernel.exceptions import (
    AllergenNotFoundError,
    CatalogValidationError,
    ElaborationNotFoundError,
    IngredientNotFoundError,
)
from trace_kernel.logging_config import get_logger
from trace_kernel.models.catalog import (
    Allergen,
    Elaboration,
    Ingredient,
    IngredientAllergen,
)
from trace_kernel.services.base import BaseService

logger = get_logger("services.catalog")


def _clean_name(field: str, value: str) -> str:
    name = (value or "").strip()
    if not name:
        raise CatalogValidationError(field, "must not be blank")
    return name


class CatalogService(BaseService[Elaboration]):
    """Writes catalog rows; flushes, never commits."""

    def create_elaboration(
        self,
        name: str,
        *,
        type: ElaborationType | int = ElaborationType.ELABORATION,
        viability_days: int = 2,
        yield_weight: Decimal = Decimal("0"),
        description: str | None = None,
    ) -> int:
        if viability_days < 0:
            raise CatalogValidationError("viability_days", "must not be negative")
        elaboration = Elaboration(
            name=_clean_name("name", name),
            type=int(ElaborationType.coerce(type)),
            viability_days=viability_days,
            yield_weight=yield_weight,
            description=description,
        )
        self.session.add(elaboration)
        self.session.flush()
        logger.info(
            "elaboration_created",
            extra={"elaboration_id": elaboration.id, "type": elaboration.type},
        )
        return elaboration.id

    def rename_elaboration(self, elaboration_id: int, new_name: str) -> None:
        """Always fails for a persisted elaboration unless only whitespace changes."""
        elaboration = self.session.get(Elaboration, elaboration_id)
        if elaboration is None:
            raise ElaborationNotFoundError(elaboration_id)
        elaboration.name = new_name
        self.session.flush()

    def create_ingredient(
        self,
        name: str,
        *,
        instructions: str | None = None,
        allergen_ids: Iterable[int] = (),
    ) -> int:
        ingredient = Ingredient(name=_clean_name("name", name), instructions=instructions)
        self.session.add(ingredient)
        self.session.flush()
        for allergen_id in allergen_ids:
            self.link_allergen(ingredient.id, allergen_id)
        logger.info("ingredient_created", extra={"ingredient_id": ingredient.id})
        return ingredient.id

    def create_allergen(self, name: str) -> int:
        allergen = Allergen(name=_clean_name("name", name))
        self.session.add(allergen)
        self.session.flush()
        return allergen.id

    def link_allergen(self, ingredient_id: int, allergen_id: int) -> None:
        """Mark an ingredient as containing an allergen (idempotent)."""
        if self.session.get(Ingredient, ingredient_id) is None:
            raise IngredientNotFoundError(ingredient_id)
        if self.session.get(Allergen, allergen_id) is None:
            raise AllergenNotFoundError(allergen_id)

        existing = self.session.execute(
            select(IngredientAllergen.id).where(
                IngredientAllergen.ingredient_id == ingredient_id,
                IngredientAllergen.allergen_id == allergen_id,
            )
        ).scalar_one_or_none()
        if existing is None:
            self.session.add(
                IngredientAllergen(ingredient_id=ingredient_id, allergen_id=allergen_id)
            )
            self.session.flush()
