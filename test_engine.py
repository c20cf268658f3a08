import unittest

from core_acid_base import AcidBaseEngine
from compensation import CompensationAnalyzer
from causes import CauseLookup
from constants import CAUSE_LIBRARY, NORMAL_RANGES
from models import (
    BloodGasInput, PHStatus, PrimaryDisorder, AnionGapStatus,
    CompensationStatus, Chronicity, DeltaRatioStatus, DataTypeError
)


class TestClassifiers(unittest.TestCase):

    def test_01_ph_status_boundaries(self):
        """7.35 and 7.45 are still normal; anything beyond is not."""
        self.assertEqual(AcidBaseEngine.determine_ph_status(7.34), PHStatus.ACIDAEMIA)
        self.assertEqual(AcidBaseEngine.determine_ph_status(7.35), PHStatus.NORMAL)
        self.assertEqual(AcidBaseEngine.determine_ph_status(7.45), PHStatus.NORMAL)
        self.assertEqual(AcidBaseEngine.determine_ph_status(7.46), PHStatus.ALKALAEMIA)
        self.assertEqual(AcidBaseEngine.determine_ph_status(-1.0), PHStatus.ACIDAEMIA)

    def test_02_strict_normal(self):
        classify = AcidBaseEngine.determine_primary_disorder
        self.assertEqual(classify(7.40, 40, 24), PrimaryDisorder.NORMAL)
        self.assertEqual(classify(7.35, 35, 22), PrimaryDisorder.NORMAL)
        self.assertEqual(classify(7.45, 45, 26), PrimaryDisorder.NORMAL)

    def test_03_single_component(self):
        classify = AcidBaseEngine.determine_primary_disorder
        self.assertEqual(classify(7.39, 30, 18), PrimaryDisorder.METABOLIC_ACIDOSIS)
        self.assertEqual(classify(7.41, 30, 18), PrimaryDisorder.RESPIRATORY_ALKALOSIS)
        self.assertEqual(classify(7.25, 55, 24), PrimaryDisorder.RESPIRATORY_ACIDOSIS)
        self.assertEqual(classify(7.50, 40, 30), PrimaryDisorder.METABOLIC_ALKALOSIS)

    def test_04_fractional_deviation_tie_break(self):
        """Both components abnormal: the larger relative deviation wins."""
        classify = AcidBaseEngine.determine_primary_disorder
        # pCO2 +50% vs HCO3 -25%
        self.assertEqual(classify(7.10, 60, 18), PrimaryDisorder.RESPIRATORY_ACIDOSIS)
        # pCO2 +25% vs HCO3 -50%
        self.assertEqual(classify(7.10, 50, 12), PrimaryDisorder.METABOLIC_ACIDOSIS)
        # Exactly equal (25% each) -> metabolic
        self.assertEqual(classify(7.20, 50, 18), PrimaryDisorder.METABOLIC_ACIDOSIS)
        # Alkalaemia: pCO2 -37.5% vs HCO3 +25%
        self.assertEqual(classify(7.60, 25, 30), PrimaryDisorder.RESPIRATORY_ALKALOSIS)
        # Alkalaemia: pCO2 -20% vs HCO3 +66%
        self.assertEqual(classify(7.60, 32, 40), PrimaryDisorder.METABOLIC_ALKALOSIS)

    def test_05_ph_exactly_neutral(self):
        """At pH 7.40 the respiratory component decides first, then HCO3."""
        classify = AcidBaseEngine.determine_primary_disorder
        self.assertEqual(classify(7.40, 50, 30), PrimaryDisorder.RESPIRATORY_ACIDOSIS)
        self.assertEqual(classify(7.40, 30, 18), PrimaryDisorder.RESPIRATORY_ALKALOSIS)
        self.assertEqual(classify(7.40, 40, 18), PrimaryDisorder.METABOLIC_ACIDOSIS)
        self.assertEqual(classify(7.40, 40, 30), PrimaryDisorder.METABOLIC_ALKALOSIS)

    def test_06_leaning_without_abnormal_component(self):
        """Acidaemia with normal pCO2/HCO3 defaults to the metabolic side."""
        classify = AcidBaseEngine.determine_primary_disorder
        self.assertEqual(classify(7.30, 40, 24), PrimaryDisorder.METABOLIC_ACIDOSIS)
        self.assertEqual(classify(7.50, 40, 24), PrimaryDisorder.METABOLIC_ALKALOSIS)

    def test_07_reference_box_is_always_normal(self):
        for ph in (7.35, 7.38, 7.40, 7.43, 7.45):
            for pco2 in (35, 40, 45):
                for hco3 in (22, 24, 26):
                    self.assertEqual(
                        AcidBaseEngine.determine_primary_disorder(ph, pco2, hco3),
                        PrimaryDisorder.NORMAL, f"{ph}/{pco2}/{hco3}")


class TestGapsAndRatios(unittest.TestCase):

    def test_01_anion_gap_high(self):
        ag = AcidBaseEngine.calculate_anion_gap(140, 100, 18)
        self.assertEqual(ag.value, 22)
        self.assertEqual(ag.corrected_value, 22)
        self.assertEqual(ag.status, AnionGapStatus.HIGH)
        self.assertEqual(ag.formula, "AG = [Na⁺] - ([Cl⁻] + [HCO₃⁻]) = 140 - (100 + 18) = 22")
        self.assertIsNone(ag.correction_formula)

    def test_02_albumin_correction(self):
        """Albumin 2.0 g/dL adds 2.5 x (4 - 2) = 5 to the gap."""
        ag = AcidBaseEngine.calculate_anion_gap(140, 100, 20, albumin=2.0)
        self.assertEqual(ag.value, 20)
        self.assertAlmostEqual(ag.corrected_value, 25.0)
        self.assertEqual(ag.status, AnionGapStatus.HIGH)
        self.assertEqual(ag.correction_formula, "Corrected AG = 20 + 2.5 × (4 - 2) = 25.0")

        # Normal albumin: no correction
        ag = AcidBaseEngine.calculate_anion_gap(140, 100, 20, albumin=4.5)
        self.assertEqual(ag.corrected_value, ag.value)
        self.assertIsNone(ag.correction_formula)

    def test_03_anion_gap_status_bands(self):
        self.assertEqual(AcidBaseEngine.calculate_anion_gap(140, 100, 24).status, AnionGapStatus.NORMAL)  # 16
        self.assertEqual(AcidBaseEngine.calculate_anion_gap(140, 105, 24).status, AnionGapStatus.NORMAL)  # 11
        self.assertEqual(AcidBaseEngine.calculate_anion_gap(140, 110, 30).status, AnionGapStatus.LOW_NEGATIVE)  # 0
        self.assertEqual(AcidBaseEngine.calculate_anion_gap(140, 113, 24).status, AnionGapStatus.NORMAL)  # 3

    def test_04_osmolar_gap(self):
        """2 x 140 + 5 + 5 + 10 = 300; measured 320 -> gap 20."""
        og = AcidBaseEngine.calculate_osmolar_gap(320, 140, 5, 5, ethanol=10)
        self.assertAlmostEqual(og.calculated_osmolality, 300.0)
        self.assertAlmostEqual(og.gap, 20.0)
        self.assertTrue(og.is_elevated)
        self.assertTrue(og.formula.endswith("= 300.0 mOsm/kg"))
        self.assertIn("+ 10", og.formula)

    def test_05_osmolar_gap_without_ethanol(self):
        og = AcidBaseEngine.calculate_osmolar_gap(300, 140, 5, 5, ethanol=0)
        self.assertAlmostEqual(og.calculated_osmolality, 290.0)
        self.assertFalse(og.is_elevated)  # gap exactly 10 is not elevated
        self.assertNotIn("+ 0", og.formula)

    def test_06_delta_ratio_degenerate(self):
        """No HCO3 change: sentinel HAGMA result, never a division."""
        dr = AcidBaseEngine.calculate_delta_ratio(24, 24)
        self.assertEqual(dr.status, DeltaRatioStatus.HAGMA)
        self.assertEqual(dr.value, 0.0)
        self.assertIn("Cannot calculate", dr.formula)

    def test_07_delta_ratio_bands(self):
        ratio = AcidBaseEngine.calculate_delta_ratio
        self.assertEqual(ratio(14, 14).status, DeltaRatioStatus.PURE_NAGMA_HAGMA)   # 0.2
        self.assertEqual(ratio(16, 14).status, DeltaRatioStatus.MIXED_NAGMA_HAGMA)  # 0.4
        self.assertEqual(ratio(17, 14).status, DeltaRatioStatus.MIXED_NAGMA_HAGMA)  # 0.5
        self.assertEqual(ratio(20, 14).status, DeltaRatioStatus.HAGMA)              # 0.8
        self.assertEqual(ratio(32, 14).status, DeltaRatioStatus.HAGMA)              # 2.0
        self.assertEqual(ratio(34, 14).status, DeltaRatioStatus.HAGMA_METABOLIC_ALKALOSIS)  # 2.2

        dr = ratio(22, 18)
        self.assertAlmostEqual(dr.value, 10 / 6)
        self.assertTrue(dr.formula.endswith("= 1.67"))

    def test_08_henderson_hasselbalch(self):
        hh = AcidBaseEngine.validate_henderson_hasselbalch
        self.assertTrue(hh(7.40, 40, 24).is_valid)
        self.assertTrue(hh(7.20, 60, 24).is_valid)   # calculated 7.225
        self.assertFalse(hh(7.40, 40, 10).is_valid)  # calculated 7.02

        degenerate = hh(7.40, 40, 0)
        self.assertFalse(degenerate.is_valid)
        self.assertIsNone(degenerate.calculated_ph)

    def test_09_electrolyte_corrections(self):
        # Glucose 27.75 mmol/L ~ 500 mg/dL -> Na 130 + 0.02 x 400
        self.assertAlmostEqual(AcidBaseEngine.calculate_corrected_sodium(130, 27.75), 138.0)
        # pH 7.2 is two 0.1 steps below 7.4 -> K 5.0 - 1.2
        self.assertAlmostEqual(AcidBaseEngine.calculate_corrected_potassium(5.0, 7.2), 3.8)


class TestCompensation(unittest.TestCase):

    def test_01_winters_formula(self):
        """HCO3 18 -> expected pCO2 35 (33-37)."""
        w = CompensationAnalyzer.winters_formula(18, 35)
        self.assertEqual(w.status, CompensationStatus.APPROPRIATE)
        self.assertAlmostEqual(w.expected_low, 33.0)
        self.assertAlmostEqual(w.expected_high, 37.0)
        self.assertEqual(w.chronicity, Chronicity.UNKNOWN)

        self.assertEqual(CompensationAnalyzer.winters_formula(18, 33).status, CompensationStatus.APPROPRIATE)
        self.assertEqual(CompensationAnalyzer.winters_formula(18, 37).status, CompensationStatus.APPROPRIATE)
        self.assertEqual(CompensationAnalyzer.winters_formula(18, 30).status, CompensationStatus.EXCESSIVE)
        self.assertEqual(CompensationAnalyzer.winters_formula(18, 40).status, CompensationStatus.INADEQUATE)
        self.assertEqual(CompensationAnalyzer.winters_formula(18, 50).status, CompensationStatus.MIXED_DISORDER)

    def test_02_metabolic_alkalosis(self):
        """HCO3 34 -> expected pCO2 43.8 (38.8-48.8)."""
        analyze = CompensationAnalyzer.metabolic_alkalosis
        self.assertEqual(analyze(34, 44).status, CompensationStatus.APPROPRIATE)
        self.assertEqual(analyze(34, 52).status, CompensationStatus.EXCESSIVE)
        self.assertEqual(analyze(34, 36).status, CompensationStatus.INADEQUATE)
        self.assertEqual(analyze(34, 30).status, CompensationStatus.MIXED_DISORDER)

    def test_03_respiratory_acidosis_chronicity(self):
        """pCO2 60: acute HCO3 26, chronic HCO3 32 (each +/- 2)."""
        analyze = lambda hco3: CompensationAnalyzer.respiratory(
            PrimaryDisorder.RESPIRATORY_ACIDOSIS, 60, hco3)

        acute = analyze(26)
        self.assertEqual((acute.status, acute.chronicity), (CompensationStatus.APPROPRIATE, Chronicity.ACUTE))
        self.assertAlmostEqual(acute.expected_value, 26.0)

        chronic = analyze(32)
        self.assertEqual((chronic.status, chronic.chronicity), (CompensationStatus.APPROPRIATE, Chronicity.CHRONIC))
        self.assertAlmostEqual(chronic.expected_low, 26.0)
        self.assertAlmostEqual(chronic.expected_high, 32.0)

        between = analyze(29)
        self.assertEqual((between.status, between.chronicity), (CompensationStatus.APPROPRIATE, Chronicity.UNKNOWN))

        excessive = analyze(36)
        self.assertEqual(excessive.status, CompensationStatus.EXCESSIVE)
        self.assertIn("metabolic alkalosis", excessive.interpretation)

        inadequate = analyze(18)
        self.assertEqual((inadequate.status, inadequate.chronicity), (CompensationStatus.INADEQUATE, Chronicity.ACUTE))
        self.assertIn("metabolic acidosis", inadequate.interpretation)

    def test_04_overlapping_bands(self):
        """Small pCO2 rise: acute and chronic expectations overlap."""
        result = CompensationAnalyzer.respiratory(PrimaryDisorder.RESPIRATORY_ACIDOSIS, 46, 25)
        self.assertEqual(result.status, CompensationStatus.APPROPRIATE)
        self.assertEqual(result.chronicity, Chronicity.UNKNOWN)

    def test_05_respiratory_alkalosis_chronicity(self):
        """pCO2 20: acute HCO3 20, chronic HCO3 14."""
        analyze = lambda hco3: CompensationAnalyzer.respiratory(
            PrimaryDisorder.RESPIRATORY_ALKALOSIS, 20, hco3)

        self.assertEqual(analyze(20).chronicity, Chronicity.ACUTE)
        self.assertEqual(analyze(14).chronicity, Chronicity.CHRONIC)
        self.assertEqual(analyze(17).chronicity, Chronicity.UNKNOWN)
        self.assertEqual(analyze(10).status, CompensationStatus.EXCESSIVE)
        self.assertEqual(analyze(25).status, CompensationStatus.INADEQUATE)
        self.assertAlmostEqual(analyze(14).expected_low, 14.0)
        self.assertAlmostEqual(analyze(14).expected_high, 20.0)

    def test_06_respiratory_rejects_metabolic_disorder(self):
        with self.assertRaises(ValueError):
            CompensationAnalyzer.respiratory(PrimaryDisorder.METABOLIC_ACIDOSIS, 30, 18)

    def test_07_secondary_disorder_table(self):
        lookup = CompensationAnalyzer.secondary_disorder
        self.assertEqual(
            lookup(PrimaryDisorder.METABOLIC_ACIDOSIS, CompensationStatus.EXCESSIVE),
            "Concurrent respiratory alkalosis")
        self.assertEqual(
            lookup(PrimaryDisorder.RESPIRATORY_ACIDOSIS, CompensationStatus.EXCESSIVE),
            "Concurrent metabolic alkalosis")
        self.assertEqual(
            lookup(PrimaryDisorder.RESPIRATORY_ALKALOSIS, CompensationStatus.EXCESSIVE),
            "Concurrent metabolic acidosis")
        self.assertIsNone(lookup(PrimaryDisorder.METABOLIC_ACIDOSIS, CompensationStatus.APPROPRIATE))


class TestCauseLookup(unittest.TestCase):

    def test_01_respiratory_acidosis_by_chronicity(self):
        self.assertEqual(
            CauseLookup.get_causes(PrimaryDisorder.RESPIRATORY_ACIDOSIS, chronicity=Chronicity.CHRONIC),
            ("COPD", "Restrictive lung disease"))
        acute = CauseLookup.get_causes(PrimaryDisorder.RESPIRATORY_ACIDOSIS)
        self.assertEqual(len(acute), 5)
        self.assertEqual(acute[-1], "Airway obstruction")
        self.assertEqual(
            CauseLookup.get_causes(PrimaryDisorder.RESPIRATORY_ACIDOSIS, chronicity=Chronicity.UNKNOWN),
            acute)

    def test_02_metabolic_acidosis_by_anion_gap(self):
        hagma = CauseLookup.get_causes(PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.HIGH)
        self.assertEqual(len(hagma), 12)
        self.assertEqual(hagma[0], "Lactate, Toxins, Ketones, Renal failure")
        self.assertEqual(len(CauseLookup.get_causes(PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.LOW_NEGATIVE)), 4)
        nagma = CauseLookup.get_causes(PrimaryDisorder.METABOLIC_ACIDOSIS)
        self.assertEqual(nagma[0], "Ureterostomy")

    def test_03_unknown_disorder(self):
        self.assertEqual(CauseLookup.get_causes(PrimaryDisorder.NORMAL), ())
        self.assertIsNone(CauseLookup.get_mnemonic(PrimaryDisorder.NORMAL))

    def test_04_mnemonics(self):
        mnemonic = CauseLookup.get_mnemonic
        self.assertEqual(mnemonic(PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.HIGH),
                         "Left Total Knee Replacement / CAT MUD PILES")
        self.assertEqual(mnemonic(PrimaryDisorder.METABOLIC_ACIDOSIS), "USED CRAP")
        self.assertEqual(mnemonic(PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.LOW_NEGATIVE), "USED CRAP")
        self.assertEqual(mnemonic(PrimaryDisorder.RESPIRATORY_ALKALOSIS), "CHAMPS")
        self.assertEqual(mnemonic(PrimaryDisorder.METABOLIC_ALKALOSIS), "CLEVER PD")
        self.assertIsNone(mnemonic(PrimaryDisorder.RESPIRATORY_ACIDOSIS))

    def test_05_reference_tables_are_read_only(self):
        with self.assertRaises(TypeError):
            CAUSE_LIBRARY.SPECS[(PrimaryDisorder.NORMAL, None)] = None
        with self.assertRaises(TypeError):
            NORMAL_RANGES["pH"] = None

    def test_06_toxic_alcohol_tree(self):
        screen = CauseLookup.screen_toxic_alcohols
        high = AnionGapStatus.HIGH

        self.assertIsNone(screen(BloodGasInput(has_ketones=True), False, False, None))
        self.assertEqual(screen(BloodGasInput(has_ketones=True), True, False, None), "Isopropyl alcohol")
        self.assertEqual(screen(BloodGasInput(has_ketones=False), True, False, None), "Ethanol")
        self.assertIsNone(screen(BloodGasInput(), True, False, None))

        self.assertEqual(screen(BloodGasInput(), True, True, AnionGapStatus.NORMAL), "Propylene glycol")
        self.assertEqual(screen(BloodGasInput(glucose=25.0), True, True, high), "Diabetic ketoacidosis")
        self.assertEqual(screen(BloodGasInput(has_vision_changes=True), True, True, high), "Methanol")
        self.assertEqual(
            screen(BloodGasInput(has_vision_changes=False, has_calcium_oxalate=True), True, True, high),
            "Ethylene glycol")
        self.assertEqual(
            screen(BloodGasInput(has_vision_changes=False, has_calcium_oxalate=False), True, True, high),
            "Mixed alcohol ingestion or late methanol stage")
        self.assertIsNone(screen(BloodGasInput(has_vision_changes=False), True, True, high))


class TestInputRecord(unittest.TestCase):

    def test_01_rejects_strings(self):
        with self.assertRaises(DataTypeError):
            BloodGasInput(ph="7.4")
        with self.assertRaises(DataTypeError):
            BloodGasInput(has_ketones="yes")
        with self.assertRaises(DataTypeError):
            BloodGasInput(na=True)

    def test_02_accepts_wire_keys(self):
        panel = BloodGasInput.from_dict({"pH": 7.4, "pCO2": 40, "HCO3": 24, "hasKetones": False, "unknown": 1})
        self.assertEqual(panel.ph, 7.4)
        self.assertEqual(panel.pco2, 40)
        self.assertFalse(panel.has_ketones)
        self.assertEqual(panel.to_dict(), {"pH": 7.4, "pCO2": 40, "HCO3": 24, "hasKetones": False})


if __name__ == '__main__':
    unittest.main()
