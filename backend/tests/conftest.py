"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- Differential tallies in each lifecycle state
- Hemogram measurements inside and outside reference ranges
- An in-memory lab exam store
"""

import pytest

from vetlab.schemas.lab_exam import DifferentialCategory, LabExamRecord, VitalMeasurements
from vetlab.services.differential import DifferentialTally


# =============================================================================
# Tally Fixtures
# =============================================================================


@pytest.fixture
def tally() -> DifferentialTally:
    """Fresh, empty tally."""
    return DifferentialTally()


@pytest.fixture
def full_tally() -> DifferentialTally:
    """Tally at capacity: 50 lymphocytes, 50 segmented neutrophils."""
    t = DifferentialTally()
    for _ in range(50):
        t.increment(DifferentialCategory.LYMPHOCYTES)
        t.increment(DifferentialCategory.SEGMENTED_NEUTROPHILS)
    return t


@pytest.fixture
def typical_dog_tally() -> DifferentialTally:
    """Plausible canine differential of 100 cells."""
    t = DifferentialTally()
    composition = {
        DifferentialCategory.SEGMENTED_NEUTROPHILS: 70,
        DifferentialCategory.BAND_NEUTROPHILS: 1,
        DifferentialCategory.LYMPHOCYTES: 20,
        DifferentialCategory.MONOCYTES: 5,
        DifferentialCategory.EOSINOPHILS: 4,
    }
    for category, count in composition.items():
        for _ in range(count):
            t.increment(category)
    return t


# =============================================================================
# Measurement Fixtures
# =============================================================================


@pytest.fixture
def normal_dog_vitals() -> VitalMeasurements:
    """Canine hemogram with every value inside its range."""
    return VitalMeasurements(
        hematocrit=45.0,
        white_blood_cells=10.0,
        total_protein=6.5,
        platelets=300.0,
    )


@pytest.fixture
def abnormal_cat_vitals() -> VitalMeasurements:
    """Feline hemogram with high hematocrit and low platelets."""
    return VitalMeasurements(
        hematocrit=50.0,
        white_blood_cells=12.0,
        total_protein=7.0,
        platelets=120.0,
    )


# =============================================================================
# Store Fixtures
# =============================================================================


class InMemoryLabExamStore:
    """Collects saved records; returns a sequential id."""

    def __init__(self):
        self.records: list[LabExamRecord] = []

    def save(self, record: LabExamRecord) -> str:
        self.records.append(record)
        return f"exam-{len(self.records)}"


class FailingLabExamStore:
    """Store whose save always fails."""

    def save(self, record: LabExamRecord) -> str:
        raise ConnectionError("storage unavailable")


@pytest.fixture
def store() -> InMemoryLabExamStore:
    return InMemoryLabExamStore()


@pytest.fixture
def failing_store() -> FailingLabExamStore:
    return FailingLabExamStore()
