"""Errors raised by the hematology engine.

All of them are scoped to a single call and leave engine state unchanged.
"""


class LabEngineError(ValueError):
    """Base class for hematology engine errors."""

    pass


class CapacityExceededError(LabEngineError):
    """Raised when incrementing a differential count that already holds 100 cells."""

    def __init__(self, capacity: int):
        super().__init__(f"Differential count cannot exceed {capacity} cells")
        self.capacity = capacity


class NothingToUndoError(LabEngineError):
    """Raised when undo is requested with no increment to revert."""

    def __init__(self):
        super().__init__("No differential count action to undo")


class UnknownSpeciesError(LabEngineError):
    """Raised for a species without reference ranges."""

    def __init__(self, species: str):
        super().__init__(f"Unknown species: {species!r}")
        self.species = species


class UnknownQuantityError(LabEngineError):
    """Raised for a quantity key that is not a vital or differential category."""

    def __init__(self, quantity: str, species: str | None = None):
        message = f"Unknown quantity: {quantity!r}"
        if species is not None:
            message += f" for species {species!r}"
        super().__init__(message)
        self.quantity = quantity
        self.species = species
