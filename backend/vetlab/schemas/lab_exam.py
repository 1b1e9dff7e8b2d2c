"""Pydantic schemas for hematology lab exams.

Defines the fixed enumerations shared by the engine (differential categories,
vital quantities, species) and the record shape handed to persistence once a
differential count is finalized. Records serialize with the camelCase field
names used by the clinic API.
"""

from datetime import date
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# === Enums ===


class DifferentialCategory(str, Enum):
    """Cell classifications tallied during a manual differential count."""

    SEGMENTED_NEUTROPHILS = "segmentedNeutrophils"
    BAND_NEUTROPHILS = "bandNeutrophils"
    LYMPHOCYTES = "lymphocytes"
    MONOCYTES = "monocytes"
    BASOPHILS = "basophils"
    RETICULOCYTES = "reticulocytes"
    EOSINOPHILS = "eosinophils"
    NRBC = "nrbc"


class VitalQuantity(str, Enum):
    """Directly measured hemogram values."""

    HEMATOCRIT = "hematocrit"
    WHITE_BLOOD_CELLS = "whiteBloodCells"
    TOTAL_PROTEIN = "totalProtein"
    PLATELETS = "platelets"


Species = Literal["perro", "gato"]

SUPPORTED_SPECIES: tuple[str, ...] = ("perro", "gato")


# === Measurement Schemas ===


class VitalMeasurements(BaseModel):
    """Hemogram values entered by the operator alongside the differential count."""

    model_config = ConfigDict(populate_by_name=True)

    hematocrit: float = Field(ge=0, description="Packed cell volume (%)")
    white_blood_cells: float = Field(
        ge=0,
        alias="whiteBloodCells",
        description="Total leukocyte count (x10^3/uL)",
    )
    total_protein: float = Field(ge=0, alias="totalProtein", description="Total protein (g/dL)")
    platelets: float = Field(ge=0, description="Platelet count (x10^3/uL)")

    def value_of(self, quantity: VitalQuantity) -> float:
        """Return the measurement for a vital quantity."""
        return {
            VitalQuantity.HEMATOCRIT: self.hematocrit,
            VitalQuantity.WHITE_BLOOD_CELLS: self.white_blood_cells,
            VitalQuantity.TOTAL_PROTEIN: self.total_protein,
            VitalQuantity.PLATELETS: self.platelets,
        }[VitalQuantity(quantity)]


class DifferentialCount(BaseModel):
    """Raw per-category cell counts of a finished differential."""

    model_config = ConfigDict(populate_by_name=True)

    segmented_neutrophils: int = Field(default=0, ge=0, le=100, alias="segmentedNeutrophils")
    band_neutrophils: int = Field(default=0, ge=0, le=100, alias="bandNeutrophils")
    lymphocytes: int = Field(default=0, ge=0, le=100)
    monocytes: int = Field(default=0, ge=0, le=100)
    basophils: int = Field(default=0, ge=0, le=100)
    reticulocytes: int = Field(default=0, ge=0, le=100)
    eosinophils: int = Field(default=0, ge=0, le=100)
    nrbc: int = Field(default=0, ge=0, le=100)

    @classmethod
    def from_counts(cls, counts: dict[DifferentialCategory, int]) -> "DifferentialCount":
        """Build from a category -> count mapping (missing categories are 0)."""
        return cls.model_validate(
            {DifferentialCategory(category).value: count for category, count in counts.items()}
        )

    def as_counts(self) -> dict[DifferentialCategory, int]:
        """Return counts keyed by category, in display order."""
        dumped = self.model_dump(by_alias=True)
        return {category: dumped[category.value] for category in DifferentialCategory}

    @property
    def total(self) -> int:
        return sum(self.as_counts().values())


# === Record Schemas ===


class LabExamRecord(BaseModel):
    """Complete hematology exam assembled at finalize time.

    This is the only durable shape: the in-progress tally is never persisted
    on its own.
    """

    model_config = ConfigDict(populate_by_name=True)

    patient_id: str = Field(min_length=1, alias="patientId")
    date: date
    species: Species
    hematocrit: float = Field(ge=0)
    white_blood_cells: float = Field(ge=0, alias="whiteBloodCells")
    total_protein: float = Field(ge=0, alias="totalProtein")
    platelets: float = Field(ge=0)
    differential_count: DifferentialCount = Field(alias="differentialCount")
    total_cells: int = Field(ge=0, le=100, alias="totalCells")
    hemotropic: str | None = Field(
        default=None,
        alias="hemotropico",
        description="Hemotropic parasite findings",
    )
    observations: str | None = Field(default=None, alias="observacion")

    @model_validator(mode="after")
    def check_total_cells(self) -> "LabExamRecord":
        """The stored total must match the per-category counts."""
        if self.total_cells != self.differential_count.total:
            raise ValueError(
                f"totalCells ({self.total_cells}) does not match the differential "
                f"count sum ({self.differential_count.total})"
            )
        return self

    @property
    def vitals(self) -> VitalMeasurements:
        return VitalMeasurements(
            hematocrit=self.hematocrit,
            white_blood_cells=self.white_blood_cells,
            total_protein=self.total_protein,
            platelets=self.platelets,
        )

    def to_payload(self) -> dict:
        """Serialize with API field names, ready for a storage collaborator."""
        return self.model_dump(mode="json", by_alias=True)


# === Summary Schemas ===


class VitalSummaryRow(BaseModel):
    """One measured value with its reference interval."""

    quantity: VitalQuantity
    label: str
    unit: str
    value: float
    low: float
    high: float
    out_of_range: bool
    interpretation: Literal["L", "N", "H"]


class DifferentialSummaryRow(BaseModel):
    """One differential category with its derived values."""

    category: DifferentialCategory
    label: str
    count: int
    percentage: float = Field(description="Fraction of counted cells, 0..1")
    absolute_concentration: float
    low: float
    high: float
    out_of_range: bool
    interpretation: Literal["L", "N", "H"]


class LabExamSummary(BaseModel):
    """Display-ready results of a saved exam."""

    patient_id: str
    date: date
    species: Species
    total_cells: int
    vitals: list[VitalSummaryRow]
    differential: list[DifferentialSummaryRow]
    vitals_out_of_range: int = Field(ge=0, le=4)
