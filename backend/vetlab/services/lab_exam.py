"""Hematology lab exam entry session.

Binds one differential tally to a patient and species, assembles the exam
record when the operator finalizes, and hands it to a storage collaborator.
Also rebuilds the display summary of a saved exam.
"""

import logging
from datetime import date
from typing import Any, Protocol

from vetlab.config import settings
from vetlab.schemas.lab_exam import (
    DifferentialCategory,
    DifferentialCount,
    DifferentialSummaryRow,
    LabExamRecord,
    LabExamSummary,
    VitalMeasurements,
    VitalQuantity,
    VitalSummaryRow,
)
from vetlab.services.calculator import DerivedResult, count_vitals_out_of_range, derive, vital_flags
from vetlab.services.differential import DifferentialTally, TallySnapshot
from vetlab.services.reference_ranges import (
    QUANTITY_LABELS,
    QUANTITY_UNITS,
    compute_interpretation,
    range_for,
    validate_species,
)

logger = logging.getLogger(__name__)


class LabExamStore(Protocol):
    """Persistence collaborator for finished exams."""

    def save(self, record: LabExamRecord) -> Any: ...


class LabExamSession:
    """One lab exam entry, from the first classification to finalize or reset.

    Each session owns its own DifferentialTally. Sessions are not shared
    between operators or specimens.
    """

    def __init__(self, patient_id: str, species: str | None = None):
        """Initialize a session.

        Args:
            patient_id: Patient the exam belongs to.
            species: "perro" or "gato". Defaults to settings.default_species.

        Raises:
            UnknownSpeciesError: If the species is not supported.
        """
        self.patient_id = patient_id
        self._species = validate_species(
            settings.default_species if species is None else species
        )
        self.tally = DifferentialTally()

    @property
    def species(self) -> str:
        return self._species

    @species.setter
    def species(self, value: str) -> None:
        self._species = validate_species(value)

    # -- Tally forwarding --------------------------------------------------

    def increment(self, category: DifferentialCategory | str) -> None:
        self.tally.increment(category)

    def undo(self) -> DifferentialCategory:
        return self.tally.undo()

    def reset(self) -> None:
        self.tally.reset()

    def snapshot(self) -> TallySnapshot:
        return self.tally.snapshot()

    def derive_all(self, total_white_cells: float) -> dict[DifferentialCategory, DerivedResult]:
        return self.tally.derive_all(total_white_cells, self._species)

    def vital_flags(self, vitals: VitalMeasurements) -> dict[VitalQuantity, bool]:
        return vital_flags(vitals, self._species)

    # -- Finalize ----------------------------------------------------------

    def build_record(
        self,
        vitals: VitalMeasurements,
        exam_date: date | None = None,
        hemotropic: str | None = None,
        observations: str | None = None,
    ) -> LabExamRecord:
        """Assemble the persisted exam record from the tally and vitals.

        Args:
            vitals: Hemogram measurements entered by the operator.
            exam_date: Exam date. Defaults to today.
            hemotropic: Free-text hemotropic parasite findings.
            observations: Free-text observations.

        Returns:
            Validated LabExamRecord.
        """
        snapshot = self.tally.snapshot()
        return LabExamRecord(
            patient_id=self.patient_id,
            date=exam_date or date.today(),
            species=self._species,
            hematocrit=vitals.hematocrit,
            white_blood_cells=vitals.white_blood_cells,
            total_protein=vitals.total_protein,
            platelets=vitals.platelets,
            differential_count=DifferentialCount.from_counts(dict(snapshot.counts)),
            total_cells=snapshot.total,
            hemotropic=hemotropic or None,
            observations=observations or None,
        )

    def finalize(
        self,
        store: LabExamStore,
        vitals: VitalMeasurements,
        exam_date: date | None = None,
        hemotropic: str | None = None,
        observations: str | None = None,
    ) -> Any:
        """Build the record, save it, and clear the tally.

        The tally is only reset once the store accepts the record. If saving
        raises, the count in progress is kept so the operator can retry.

        Returns:
            Whatever the store returns from save().
        """
        record = self.build_record(vitals, exam_date, hemotropic, observations)
        saved = store.save(record)
        logger.info(
            "Saved lab exam for patient %s (%s, %d cells)",
            self.patient_id,
            self._species,
            record.total_cells,
        )
        self.tally.reset()
        return saved


def summarize_exam(record: LabExamRecord) -> LabExamSummary:
    """Rebuild the display rows of a saved exam.

    Percentages and absolutes are re-derived from the stored raw counts and
    white-cell measurement, so the summary always matches the record.
    """
    species = record.species
    vitals = record.vitals
    flags = vital_flags(vitals, species)

    vital_rows = []
    for quantity in VitalQuantity:
        reference_range = range_for(species, quantity)
        vital_rows.append(
            VitalSummaryRow(
                quantity=quantity,
                label=QUANTITY_LABELS[quantity.value],
                unit=QUANTITY_UNITS[quantity.value],
                value=vitals.value_of(quantity),
                low=reference_range.low,
                high=reference_range.high,
                out_of_range=flags[quantity],
                interpretation=compute_interpretation(vitals.value_of(quantity), reference_range),
            )
        )

    counts = record.differential_count.as_counts()
    snapshot = TallySnapshot(counts=counts, total=record.total_cells)
    derived = derive(snapshot, record.white_blood_cells, species)

    differential_rows = []
    for category, result in derived.items():
        reference_range = range_for(species, category)
        differential_rows.append(
            DifferentialSummaryRow(
                category=category,
                label=QUANTITY_LABELS[category.value],
                count=counts[category],
                percentage=result.percentage,
                absolute_concentration=result.absolute_concentration,
                low=reference_range.low,
                high=reference_range.high,
                out_of_range=result.out_of_range,
                interpretation=compute_interpretation(
                    result.absolute_concentration, reference_range
                ),
            )
        )

    return LabExamSummary(
        patient_id=record.patient_id,
        date=record.date,
        species=species,
        total_cells=record.total_cells,
        vitals=vital_rows,
        differential=differential_rows,
        vitals_out_of_range=count_vitals_out_of_range(vitals, species),
    )
