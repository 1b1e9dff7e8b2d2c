"""Species-specific hematology reference ranges.

Provides a static lookup table of normal intervals for dogs ("perro") and
cats ("gato") covering the four directly measured hemogram values and the
absolute concentration of each differential category. Also computes a simple
L/N/H interpretation from an observed value.

Values are compiled in. Changing a clinical reference value requires a new
release, never a runtime update.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping

from vetlab.schemas.lab_exam import SUPPORTED_SPECIES, DifferentialCategory, VitalQuantity
from vetlab.services.exceptions import UnknownQuantityError, UnknownSpeciesError

Interpretation = Literal["L", "N", "H"]

QuantityKey = VitalQuantity | DifferentialCategory | str


@dataclass(frozen=True)
class ReferenceRange:
    """Closed normal interval [low, high].

    Attributes:
        low: Lowest normal value.
        high: Highest normal value.
    """

    low: float
    high: float

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


# ---------------------------------------------------------------------------
# Reference range lookup table
#
# Structure:
#   species -> quantity key -> (low, high)
#
# Vitals: hematocrit in %, whiteBloodCells and platelets in x10^3/uL,
# totalProtein in g/dL. Differential categories are absolute
# concentrations in x10^3/uL.
# ---------------------------------------------------------------------------

_RAW_RANGES: dict[str, dict[str, tuple[float, float]]] = {
    "perro": {
        "hematocrit": (37, 55),
        "whiteBloodCells": (6, 17),
        "totalProtein": (5.4, 7.8),
        "platelets": (175, 500),
        "segmentedNeutrophils": (3.3, 11.4),
        "bandNeutrophils": (0, 0.3),
        "lymphocytes": (1.0, 4.8),
        "monocytes": (0.1, 1.4),
        "eosinophils": (0.1, 1.3),
        "basophils": (0, 0.2),
        "nrbc": (0, 0.2),
        "reticulocytes": (0, 1.5),
    },
    "gato": {
        "hematocrit": (30, 45),
        "whiteBloodCells": (5.5, 19.5),
        "totalProtein": (5.7, 8.9),
        "platelets": (180, 500),
        "segmentedNeutrophils": (2.5, 12.5),
        "bandNeutrophils": (0, 0.3),
        "lymphocytes": (1.5, 7.0),
        "monocytes": (0.1, 1.4),
        "eosinophils": (0.1, 1.5),
        "basophils": (0, 0.2),
        "nrbc": (0, 0.2),
        "reticulocytes": (0, 1.5),
    },
}

REFERENCE_RANGES: Mapping[str, Mapping[str, ReferenceRange]] = MappingProxyType(
    {
        species: MappingProxyType(
            {key: ReferenceRange(float(low), float(high)) for key, (low, high) in ranges.items()}
        )
        for species, ranges in _RAW_RANGES.items()
    }
)

QUANTITY_LABELS: Mapping[str, str] = MappingProxyType(
    {
        VitalQuantity.HEMATOCRIT.value: "Hematocrito",
        VitalQuantity.WHITE_BLOOD_CELLS.value: "Leucocitos",
        VitalQuantity.TOTAL_PROTEIN.value: "Proteínas Totales",
        VitalQuantity.PLATELETS.value: "Plaquetas",
        DifferentialCategory.SEGMENTED_NEUTROPHILS.value: "Neutrófilos Segmentados",
        DifferentialCategory.BAND_NEUTROPHILS.value: "Neutrófilos en Banda",
        DifferentialCategory.LYMPHOCYTES.value: "Linfocitos",
        DifferentialCategory.MONOCYTES.value: "Monocitos",
        DifferentialCategory.BASOPHILS.value: "Basófilos",
        DifferentialCategory.RETICULOCYTES.value: "Reticulocitos",
        DifferentialCategory.EOSINOPHILS.value: "Eosinófilos",
        DifferentialCategory.NRBC.value: "NRBC",
    }
)

QUANTITY_UNITS: Mapping[str, str] = MappingProxyType(
    {
        VitalQuantity.HEMATOCRIT.value: "%",
        VitalQuantity.WHITE_BLOOD_CELLS.value: "x10³/µL",
        VitalQuantity.TOTAL_PROTEIN.value: "g/dL",
        VitalQuantity.PLATELETS.value: "x10³/µL",
        **{category.value: "x10³/µL" for category in DifferentialCategory},
    }
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def quantity_key(quantity: QuantityKey) -> str:
    """Normalize an enum member or raw string to its table key."""
    if isinstance(quantity, Enum):
        return quantity.value
    return quantity


def validate_species(species: str) -> str:
    """Return the species unchanged, or raise UnknownSpeciesError."""
    if species not in SUPPORTED_SPECIES:
        raise UnknownSpeciesError(species)
    return species


def get_species_ranges(species: str) -> Mapping[str, ReferenceRange]:
    """Return the read-only range table for one species.

    Raises:
        UnknownSpeciesError: If the species is not supported.
    """
    return REFERENCE_RANGES[validate_species(species)]


def range_for(species: str, quantity: QuantityKey) -> ReferenceRange:
    """Return the normal interval for a quantity in a species.

    Args:
        species: "perro" or "gato".
        quantity: A VitalQuantity, DifferentialCategory, or its string value.

    Returns:
        ReferenceRange for the quantity.

    Raises:
        UnknownSpeciesError: If the species is not supported.
        UnknownQuantityError: If the key is not one of the twelve quantities.
    """
    ranges = get_species_ranges(species)
    key = quantity_key(quantity)
    try:
        return ranges[key]
    except (KeyError, TypeError):
        raise UnknownQuantityError(str(key), species) from None


def is_out_of_range(value: float, reference_range: ReferenceRange) -> bool:
    """True when value lies strictly outside the closed interval."""
    return value < reference_range.low or value > reference_range.high


def compute_interpretation(value: float, reference_range: ReferenceRange) -> Interpretation:
    """Compute an interpretation code from a value and its reference range.

    Boundary semantics are exclusive:
      value < low  -> "L"
      value > high -> "H"
      otherwise    -> "N"
    """
    if value < reference_range.low:
        return "L"
    if value > reference_range.high:
        return "H"
    return "N"
