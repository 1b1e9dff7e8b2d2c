"""Tests for derived differential values and vital range checks."""

import random

import pytest

from vetlab.schemas.lab_exam import DifferentialCategory, VitalMeasurements, VitalQuantity
from vetlab.services.calculator import (
    DerivedResult,
    count_vitals_out_of_range,
    derive,
    is_vital_out_of_range,
    vital_flags,
)
from vetlab.services.differential import DifferentialTally
from vetlab.services.exceptions import UnknownQuantityError, UnknownSpeciesError

LYMPH = DifferentialCategory.LYMPHOCYTES


def make_tally(counts: dict[DifferentialCategory, int]) -> DifferentialTally:
    tally = DifferentialTally()
    for category, n in counts.items():
        for _ in range(n):
            tally.increment(category)
    return tally


# ── derive() ─────────────────────────────────────────────────────────────


class TestDerive:
    def test_lymphocyte_scenario(self):
        tally = make_tally(
            {LYMPH: 20, DifferentialCategory.SEGMENTED_NEUTROPHILS: 80}
        )
        results = derive(tally, 10, "perro")

        lymph = results[LYMPH]
        assert lymph.percentage == pytest.approx(0.20)
        assert lymph.absolute_concentration == pytest.approx(2.0)
        assert lymph.out_of_range is False

    def test_returns_every_category_in_order(self, tally):
        results = derive(tally, 10, "perro")
        assert list(results) == list(DifferentialCategory)
        assert all(isinstance(r, DerivedResult) for r in results.values())

    def test_accepts_snapshot(self, typical_dog_tally):
        from_tally = derive(typical_dog_tally, 10, "perro")
        from_snapshot = derive(typical_dog_tally.snapshot(), 10, "perro")
        assert from_tally == from_snapshot

    def test_typical_dog_all_in_range(self, typical_dog_tally):
        results = derive(typical_dog_tally, 10, "perro")
        assert not any(r.out_of_range for r in results.values())
        seg = results[DifferentialCategory.SEGMENTED_NEUTROPHILS]
        assert seg.absolute_concentration == pytest.approx(7.0)

    def test_high_absolute_flagged(self):
        tally = make_tally({LYMPH: 100})
        results = derive(tally, 10, "perro")
        # 1.0 * 10 = 10.0 > 4.8
        assert results[LYMPH].out_of_range is True

    def test_same_absolute_differs_by_species(self):
        # 60% of 10 = 6.0 lymphocytes: high for dogs, normal for cats
        tally = make_tally({LYMPH: 60, DifferentialCategory.MONOCYTES: 40})
        assert derive(tally, 10, "perro")[LYMPH].out_of_range is True
        assert derive(tally, 10, "gato")[LYMPH].out_of_range is False

    def test_zero_white_cells(self, typical_dog_tally):
        results = derive(typical_dog_tally, 0, "perro")
        assert all(r.absolute_concentration == 0 for r in results.values())
        assert results[DifferentialCategory.SEGMENTED_NEUTROPHILS].percentage == pytest.approx(0.70)

    def test_unknown_species(self, typical_dog_tally):
        with pytest.raises(UnknownSpeciesError):
            derive(typical_dog_tally, 10, "conejo")

    def test_unknown_species_on_empty_tally(self, tally):
        with pytest.raises(UnknownSpeciesError):
            derive(tally, 10, "conejo")

    def test_derive_all_on_tally(self, typical_dog_tally):
        assert typical_dog_tally.derive_all(10, "perro") == derive(typical_dog_tally, 10, "perro")


class TestDeriveEmptyTally:
    def test_everything_zero(self, tally):
        results = derive(tally, 12, "perro")
        for result in results.values():
            assert result.percentage == 0
            assert result.absolute_concentration == 0

    def test_flags_follow_low_bound(self, tally):
        """With no cells counted, categories whose low bound exceeds 0 are flagged."""
        results = derive(tally, 12, "perro")
        assert results[DifferentialCategory.SEGMENTED_NEUTROPHILS].out_of_range is True
        assert results[LYMPH].out_of_range is True
        assert results[DifferentialCategory.MONOCYTES].out_of_range is True
        assert results[DifferentialCategory.EOSINOPHILS].out_of_range is True
        assert results[DifferentialCategory.BAND_NEUTROPHILS].out_of_range is False
        assert results[DifferentialCategory.BASOPHILS].out_of_range is False
        assert results[DifferentialCategory.NRBC].out_of_range is False
        assert results[DifferentialCategory.RETICULOCYTES].out_of_range is False


class TestDeriveConsistency:
    @pytest.mark.parametrize("seed", range(20))
    def test_percentages_sum_to_one(self, seed):
        rng = random.Random(seed)
        tally = DifferentialTally()
        for _ in range(rng.randint(1, 100)):
            tally.increment(rng.choice(list(DifferentialCategory)))

        wbc = rng.uniform(0.5, 40.0)
        results = derive(tally, wbc, rng.choice(["perro", "gato"]))

        assert sum(r.percentage for r in results.values()) == pytest.approx(1.0)
        assert sum(r.absolute_concentration for r in results.values()) == pytest.approx(wbc)

    @pytest.mark.parametrize("seed", range(5))
    def test_derive_is_pure(self, seed):
        rng = random.Random(seed)
        tally = DifferentialTally()
        for _ in range(rng.randint(0, 100)):
            tally.increment(rng.choice(list(DifferentialCategory)))
        before = tally.snapshot()
        last_before = tally.last_incremented

        first = derive(tally, 9.5, "gato")
        second = derive(tally, 9.5, "gato")

        assert first == second
        assert tally.snapshot() == before
        assert tally.last_incremented == last_before


class TestDerivedResultDisplay:
    def test_percentage_display(self):
        result = DerivedResult(percentage=0.2, absolute_concentration=2.0, out_of_range=False)
        assert result.percentage_display == "20.0"
        assert result.absolute_display == "2.0"

    def test_rounds_to_one_decimal(self):
        result = DerivedResult(percentage=1 / 3, absolute_concentration=10 / 3, out_of_range=False)
        assert result.percentage_display == "33.3"
        assert result.absolute_display == "3.3"


# ── Vitals ───────────────────────────────────────────────────────────────


class TestIsVitalOutOfRange:
    def test_cat_hematocrit_high(self):
        assert is_vital_out_of_range("hematocrit", 50, "gato") is True

    def test_cat_hematocrit_normal(self):
        assert is_vital_out_of_range(VitalQuantity.HEMATOCRIT, 40, "gato") is False

    def test_boundaries_are_normal(self):
        assert is_vital_out_of_range("platelets", 175, "perro") is False
        assert is_vital_out_of_range("platelets", 500, "perro") is False

    def test_low_value(self):
        assert is_vital_out_of_range("totalProtein", 4.0, "perro") is True

    def test_category_is_not_a_vital(self):
        with pytest.raises(UnknownQuantityError):
            is_vital_out_of_range("lymphocytes", 2.0, "perro")

    def test_unknown_quantity(self):
        with pytest.raises(UnknownQuantityError):
            is_vital_out_of_range("glucose", 90, "perro")

    def test_unknown_species(self):
        with pytest.raises(UnknownSpeciesError):
            is_vital_out_of_range("hematocrit", 40, "hamster")


class TestVitalFlags:
    def test_normal_dog(self, normal_dog_vitals):
        flags = vital_flags(normal_dog_vitals, "perro")
        assert set(flags) == set(VitalQuantity)
        assert not any(flags.values())
        assert count_vitals_out_of_range(normal_dog_vitals, "perro") == 0

    def test_abnormal_cat(self, abnormal_cat_vitals):
        flags = vital_flags(abnormal_cat_vitals, "gato")
        assert flags[VitalQuantity.HEMATOCRIT] is True
        assert flags[VitalQuantity.PLATELETS] is True
        assert flags[VitalQuantity.WHITE_BLOOD_CELLS] is False
        assert count_vitals_out_of_range(abnormal_cat_vitals, "gato") == 2

    def test_same_vitals_other_species(self):
        vitals = VitalMeasurements(
            hematocrit=50.0, white_blood_cells=18.0, total_protein=8.5, platelets=178.0
        )
        # Dog: WBC > 17, protein > 7.8, platelets fine (>= 175)
        assert count_vitals_out_of_range(vitals, "perro") == 2
        # Cat: hematocrit > 45, platelets < 180
        assert count_vitals_out_of_range(vitals, "gato") == 2
