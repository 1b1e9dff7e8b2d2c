"""Derived values for a differential count.

Pure functions turning a tally and the total white-cell measurement into
per-category percentages and absolute concentrations, flagged against the
species reference ranges. Nothing here mutates its inputs or keeps state, so
calling derive() twice with the same arguments yields equal results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from vetlab.schemas.lab_exam import DifferentialCategory, VitalMeasurements, VitalQuantity
from vetlab.services.exceptions import UnknownQuantityError
from vetlab.services.reference_ranges import (
    get_species_ranges,
    is_out_of_range,
    quantity_key,
    range_for,
)

if TYPE_CHECKING:
    from vetlab.services.differential import DifferentialTally, TallySnapshot

_VITAL_KEYS = frozenset(q.value for q in VitalQuantity)


@dataclass(frozen=True)
class DerivedResult:
    """Derived values for one differential category.

    Attributes:
        percentage: Fraction of counted cells in this category (0..1).
        absolute_concentration: percentage * total white cells (x10^3/uL).
        out_of_range: Whether the absolute value falls outside the species range.
    """

    percentage: float
    absolute_concentration: float
    out_of_range: bool

    @property
    def percentage_display(self) -> str:
        """Percentage as shown on the entry form, e.g. "20.0"."""
        return f"{self.percentage * 100:.1f}"

    @property
    def absolute_display(self) -> str:
        return f"{self.absolute_concentration:.1f}"


def derive(
    tally: DifferentialTally | TallySnapshot,
    total_white_cells: float,
    species: str,
) -> dict[DifferentialCategory, DerivedResult]:
    """Compute percentage, absolute concentration and range flag per category.

    With an empty tally every percentage and absolute is 0, and a category is
    reported out of range whenever its normal low bound is above 0.

    Args:
        tally: A DifferentialTally or a TallySnapshot taken from one.
        total_white_cells: Total leukocyte count (x10^3/uL).
        species: "perro" or "gato".

    Returns:
        Mapping of every category, in display order, to its DerivedResult.

    Raises:
        UnknownSpeciesError: If the species is not supported.
    """
    ranges = get_species_ranges(species)
    snapshot = tally.snapshot() if hasattr(tally, "snapshot") else tally

    results: dict[DifferentialCategory, DerivedResult] = {}
    for category in DifferentialCategory:
        count = snapshot.counts.get(category, 0)
        percentage = count / snapshot.total if snapshot.total > 0 else 0.0
        absolute = percentage * total_white_cells
        results[category] = DerivedResult(
            percentage=percentage,
            absolute_concentration=absolute,
            out_of_range=is_out_of_range(absolute, ranges[category.value]),
        )
    return results


def is_vital_out_of_range(
    quantity: VitalQuantity | str,
    value: float,
    species: str,
) -> bool:
    """Check a directly measured hemogram value against its reference range.

    Raises:
        UnknownSpeciesError: If the species is not supported.
        UnknownQuantityError: If quantity is not one of the four vitals.
    """
    key = quantity_key(quantity)
    reference_range = range_for(species, key)
    if key not in _VITAL_KEYS:
        raise UnknownQuantityError(key, species)
    return is_out_of_range(value, reference_range)


def vital_flags(vitals: VitalMeasurements, species: str) -> dict[VitalQuantity, bool]:
    """Return the out-of-range flag of each vital measurement."""
    return {
        quantity: is_vital_out_of_range(quantity, vitals.value_of(quantity), species)
        for quantity in VitalQuantity
    }


def count_vitals_out_of_range(vitals: VitalMeasurements, species: str) -> int:
    """Number of vitals outside their reference range."""
    return sum(vital_flags(vitals, species).values())
