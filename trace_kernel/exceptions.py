"""
Typed exception hierarchy for the traceability kernel.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, stable across message rewording) and
its context stored as attributes so it survives logging and serialization.

    TraceKernelError (base)
    |
    +-- ValidationError
    |   +-- LotValidationError
    |   +-- LabelValidationError
    |   +-- CatalogValidationError
    |
    +-- ReferentialError
    |   +-- ElaborationNotFoundError
    |   +-- IngredientNotFoundError
    |   +-- AllergenNotFoundError
    |   +-- LotNotFoundError
    |   +-- ParentLotNotFoundError
    |
    +-- StorageError
    |   +-- LotPersistenceError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- PrintError
        +-- PrintFailedError

Category     | Code                    | When Raised
-------------|-------------------------|------------------------------------------
Validation   | LOT_VALIDATION          | Missing/malformed lot or entry field
             | LABEL_VALIDATION        | Label request is not a usable mapping
             | CATALOG_VALIDATION      | Blank or malformed catalog field
-------------|-------------------------|------------------------------------------
Referential  | ELABORATION_NOT_FOUND   | Lot references an unknown elaboration
             | INGREDIENT_NOT_FOUND    | Composition entry ingredient unknown
             | ALLERGEN_NOT_FOUND      | Allergen link to an unknown allergen
             | LOT_NOT_FOUND           | Lot id doesn't exist
             | PARENT_LOT_NOT_FOUND    | Parent lot unknown (strict mode only)
-------------|-------------------------|------------------------------------------
Storage      | LOT_PERSISTENCE_FAILED  | Flush/constraint failure during creation
-------------|-------------------------|------------------------------------------
Immutability | IMMUTABILITY_VIOLATION  | Lot code or elaboration name changed
-------------|-------------------------|------------------------------------------
Print        | PRINT_FAILED            | Printer sink reported failure

Handling pattern::

    try:
        created = lot_service.create_lot(data, entries)
    except IngredientNotFoundError as e:
        return {"error": e.code, "index": e.index, "ingredient_id": e.ingredient_id}
"""


class TraceKernelError(Exception):
    """
    Base exception for all traceability kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "TRACE_KERNEL_ERROR"


# Validation


class ValidationError(TraceKernelError):
    """Base exception for malformed input."""

    code: str = "VALIDATION_ERROR"


class LotValidationError(ValidationError):
    """Lot data or a composition entry is missing a field or has the wrong shape."""

    code: str = "LOT_VALIDATION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid lot field '{field}': {reason}")


class LabelValidationError(ValidationError):
    """Label request cannot be normalized."""

    code: str = "LABEL_VALIDATION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid label field '{field}': {reason}")


class CatalogValidationError(ValidationError):
    """Catalog record (elaboration, ingredient, allergen) has a bad field."""

    code: str = "CATALOG_VALIDATION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid catalog field '{field}': {reason}")


# Referential


class ReferentialError(TraceKernelError):
    """Base exception for references to records that do not exist."""

    code: str = "REFERENTIAL_ERROR"


class ElaborationNotFoundError(ReferentialError):
    """Elaboration with given ID was not found."""

    code: str = "ELABORATION_NOT_FOUND"

    def __init__(self, elaboration_id: int):
        self.elaboration_id = elaboration_id
        super().__init__(f"Elaboration not found: {elaboration_id}")


class IngredientNotFoundError(ReferentialError):
    """
    Unknown ingredient.

    ``index`` is the offending composition entry when the id came from a
    lot's entries, None for catalog operations.
    """

    code: str = "INGREDIENT_NOT_FOUND"

    def __init__(self, ingredient_id: int, index: int | None = None):
        self.ingredient_id = ingredient_id
        self.index = index
        message = f"Ingredient not found: {ingredient_id}"
        if index is not None:
            message = f"Composition entry {index}: ingredient not found: {ingredient_id}"
        super().__init__(message)


class AllergenNotFoundError(ReferentialError):
    """Allergen with given ID was not found."""

    code: str = "ALLERGEN_NOT_FOUND"

    def __init__(self, allergen_id: int):
        self.allergen_id = allergen_id
        super().__init__(f"Allergen not found: {allergen_id}")


class LotNotFoundError(ReferentialError):
    """Lot with given ID was not found."""

    code: str = "LOT_NOT_FOUND"

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


class ParentLotNotFoundError(ReferentialError):
    """
    Parent lot reference points to a missing lot.

    Only raised when the caller asks for strict parent validation; the
    default policy degrades the reference to "no parent".
    """

    code: str = "PARENT_LOT_NOT_FOUND"

    def __init__(self, parent_lot_id: int):
        self.parent_lot_id = parent_lot_id
        super().__init__(f"Parent lot not found: {parent_lot_id}")


# Storage


class StorageError(TraceKernelError):
    """Base exception for transactional storage failures."""

    code: str = "STORAGE_ERROR"


class LotPersistenceError(StorageError):
    """Lot creation failed in the store and was rolled back."""

    code: str = "LOT_PERSISTENCE_FAILED"

    def __init__(self, elaboration_id: int, reason: str):
        self.elaboration_id = elaboration_id
        self.reason = reason
        super().__init__(
            f"Lot creation for elaboration {elaboration_id} rolled back: {reason}"
        )


# Immutability


class ImmutabilityError(TraceKernelError):
    """Base exception for modifications of frozen records."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempt to change a field that is frozen once written."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Printing


class PrintError(TraceKernelError):
    """Base exception for label transmission failures."""

    code: str = "PRINT_ERROR"


class PrintFailedError(PrintError):
    """The printer sink did not accept the document."""

    code: str = "PRINT_FAILED"

    def __init__(self, device: str, reason: str = "printer sink reported failure"):
        self.device = device
        self.reason = reason
        super().__init__(f"Printing to {device} failed: {reason}")
