"""Pydantic schemas."""

from vetlab.schemas.lab_exam import (
    SUPPORTED_SPECIES,
    DifferentialCategory,
    DifferentialCount,
    DifferentialSummaryRow,
    LabExamRecord,
    LabExamSummary,
    Species,
    VitalMeasurements,
    VitalQuantity,
    VitalSummaryRow,
)

__all__ = [
    "SUPPORTED_SPECIES",
    "DifferentialCategory",
    "DifferentialCount",
    "DifferentialSummaryRow",
    "LabExamRecord",
    "LabExamSummary",
    "Species",
    "VitalMeasurements",
    "VitalQuantity",
    "VitalSummaryRow",
]
