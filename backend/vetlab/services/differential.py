"""Differential leukocyte tally engine.

Holds the count-in-progress of a manual differential: one counter per cell
category, a running total capped at 100 cells, and a single-slot record of
the last increment so the operator can revert one misclick.

The engine has no presentation side effects. Sounds, toasts and disabling
buttons belong to the caller, which reacts to the exceptions raised here.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from vetlab.schemas.lab_exam import DifferentialCategory
from vetlab.services.calculator import DerivedResult, derive
from vetlab.services.exceptions import (
    CapacityExceededError,
    NothingToUndoError,
    UnknownQuantityError,
)

logger = logging.getLogger(__name__)

# Standard manual differential: classify cells until 100 are tallied
MAX_CELLS = 100


class TallyStatus(str, Enum):
    """Coarse state of a tally session."""

    EMPTY = "empty"
    COUNTING = "counting"
    FULL = "full"


@dataclass(frozen=True)
class TallySnapshot:
    """Immutable copy of a tally.

    Attributes:
        counts: Read-only mapping with every category present.
        total: Sum of all counts.
    """

    counts: Mapping[DifferentialCategory, int]
    total: int

    def __hash__(self) -> int:
        return hash((tuple(sorted((c.value, n) for c, n in self.counts.items())), self.total))

    def as_dict(self) -> dict[str, int]:
        """Counts keyed by category value, plus "total"."""
        return {**{c.value: n for c, n in self.counts.items()}, "total": self.total}


def _coerce_category(category: DifferentialCategory | str) -> DifferentialCategory:
    try:
        return DifferentialCategory(category)
    except ValueError:
        raise UnknownQuantityError(str(category)) from None


def _empty_counts() -> dict[DifferentialCategory, int]:
    return {category: 0 for category in DifferentialCategory}


class DifferentialTally:
    """Mutable counting session for one specimen.

    Invariants after every public call:
      total == sum(counts.values())
      0 <= total <= MAX_CELLS

    Only one level of undo is kept. After an undo, a second undo fails until
    a new increment is made.
    """

    def __init__(self):
        self._counts: dict[DifferentialCategory, int] = _empty_counts()
        self._total = 0
        self._last_incremented: DifferentialCategory | None = None

    def __repr__(self) -> str:
        return f"DifferentialTally(total={self._total}, last={self._last_incremented})"

    # -- Read-only state ---------------------------------------------------

    @property
    def total(self) -> int:
        return self._total

    @property
    def last_incremented(self) -> DifferentialCategory | None:
        return self._last_incremented

    @property
    def remaining(self) -> int:
        """Cells left before the cap is reached."""
        return MAX_CELLS - self._total

    @property
    def is_full(self) -> bool:
        return self._total >= MAX_CELLS

    @property
    def status(self) -> TallyStatus:
        if self._total == 0:
            return TallyStatus.EMPTY
        if self.is_full:
            return TallyStatus.FULL
        return TallyStatus.COUNTING

    def count(self, category: DifferentialCategory | str) -> int:
        return self._counts[_coerce_category(category)]

    def snapshot(self) -> TallySnapshot:
        """Return an immutable copy of counts and total."""
        return TallySnapshot(counts=MappingProxyType(dict(self._counts)), total=self._total)

    # -- Transitions -------------------------------------------------------

    def increment(self, category: DifferentialCategory | str) -> None:
        """Tally one more cell of the given category.

        Raises:
            CapacityExceededError: If the tally already holds MAX_CELLS cells.
            UnknownQuantityError: If category is not a differential category.
        """
        category = _coerce_category(category)
        if self.is_full:
            logger.warning("Differential count full, rejected %s", category.value)
            raise CapacityExceededError(MAX_CELLS)

        self._counts[category] += 1
        self._total += 1
        self._last_incremented = category
        logger.debug("Incremented %s (total=%d)", category.value, self._total)

    def undo(self) -> DifferentialCategory:
        """Revert the most recent increment.

        Returns:
            The category that was decremented.

        Raises:
            NothingToUndoError: If there is no increment to revert.
        """
        category = self._last_incremented
        if category is None or self._counts[category] == 0:
            logger.warning("Undo requested with no pending action")
            raise NothingToUndoError()

        self._counts[category] -= 1
        self._total -= 1
        self._last_incremented = None
        logger.debug("Undid %s (total=%d)", category.value, self._total)
        return category

    def reset(self) -> None:
        """Zero every count and forget the last action."""
        self._counts = _empty_counts()
        self._total = 0
        self._last_incremented = None
        logger.debug("Differential count reset")

    # -- Derivation --------------------------------------------------------

    def derive_all(
        self, total_white_cells: float, species: str
    ) -> dict[DifferentialCategory, DerivedResult]:
        """Derive percentages and absolutes for every category.

        See vetlab.services.calculator.derive.
        """
        return derive(self.snapshot(), total_white_cells, species)
