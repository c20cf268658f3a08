"""
ABG Interpreter: Core Acid-Base Engine
======================================
The mathematical core: classifies the panel and computes the diagnostic
gaps and ratios. Every function here is total over finite numbers and has
no side effects beyond debug logging.
"""

import logging
import math
from typing import Optional

# Import Data Models & Enums
from models import (
    PHStatus,
    PrimaryDisorder,
    AnionGapStatus,
    DeltaRatioStatus,
    AnionGapResult,
    OsmolarGapResult,
    DeltaRatioResult,
    HendersonHasselbalchCheck,
)

# Import Reference Data
from constants import ACID_BASE_CONSTANTS as ABC, NORMAL_RANGES

logger = logging.getLogger(__name__)


def fmt(value: float) -> str:
    """Display a number without a trailing '.0' (140 not 140.0)."""
    return f"{value:g}"


class AcidBaseEngine:
    """
    The Mathematical Core.
    Translates a pH / pCO2 / HCO3 triple -> pH status -> primary disorder,
    and computes the anion gap, osmolar gap and delta ratio.
    """

    @staticmethod
    def determine_ph_status(ph: float) -> PHStatus:
        if ph < ABC.PH_ACIDAEMIA_BELOW:
            return PHStatus.ACIDAEMIA
        if ph > ABC.PH_ALKALAEMIA_ABOVE:
            return PHStatus.ALKALAEMIA
        return PHStatus.NORMAL

    @staticmethod
    def is_strict_normal(ph: float, pco2: float, hco3: float) -> bool:
        """All three values inside their reference ranges simultaneously."""
        return (
            NORMAL_RANGES["pH"].contains(ph)
            and NORMAL_RANGES["pCO2"].contains(pco2)
            and NORMAL_RANGES["HCO3"].contains(hco3)
        )

    @staticmethod
    def _effective_tendency(ph: float, pco2: float, hco3: float) -> PHStatus:
        """
        Which way the panel leans. A pH of exactly 7.40 with abnormal
        components is resolved by the respiratory component first, then
        the metabolic one.
        """
        if ph < ABC.PH_NEUTRAL:
            return PHStatus.ACIDAEMIA
        if ph > ABC.PH_NEUTRAL:
            return PHStatus.ALKALAEMIA

        pco2_range = NORMAL_RANGES["pCO2"]
        hco3_range = NORMAL_RANGES["HCO3"]
        if pco2 > pco2_range.high:
            return PHStatus.ACIDAEMIA
        if pco2 < pco2_range.low:
            return PHStatus.ALKALAEMIA
        if hco3 < hco3_range.low:
            return PHStatus.ACIDAEMIA
        if hco3 > hco3_range.high:
            return PHStatus.ALKALAEMIA
        return PHStatus.NORMAL

    @staticmethod
    def _fractional_deviations(pco2: float, hco3: float) -> tuple:
        pco2_dev = abs(pco2 - ABC.PCO2_MIDPOINT) / ABC.PCO2_MIDPOINT
        hco3_dev = abs(hco3 - ABC.HCO3_MIDPOINT) / ABC.HCO3_MIDPOINT
        return pco2_dev, hco3_dev

    @staticmethod
    def determine_primary_disorder(ph: float, pco2: float, hco3: float) -> PrimaryDisorder:
        if AcidBaseEngine.is_strict_normal(ph, pco2, hco3):
            return PrimaryDisorder.NORMAL

        tendency = AcidBaseEngine._effective_tendency(ph, pco2, hco3)
        pco2_range = NORMAL_RANGES["pCO2"]
        hco3_range = NORMAL_RANGES["HCO3"]

        if tendency == PHStatus.ACIDAEMIA:
            respiratory = pco2 > pco2_range.high
            metabolic = hco3 < hco3_range.low
            if respiratory and metabolic:
                # Both explain the acidaemia: the larger relative deviation wins
                pco2_dev, hco3_dev = AcidBaseEngine._fractional_deviations(pco2, hco3)
                logger.debug("Acidaemia tie-break: pCO2 dev %.3f vs HCO3 dev %.3f", pco2_dev, hco3_dev)
                if pco2_dev > hco3_dev:
                    return PrimaryDisorder.RESPIRATORY_ACIDOSIS
                return PrimaryDisorder.METABOLIC_ACIDOSIS
            if respiratory:
                return PrimaryDisorder.RESPIRATORY_ACIDOSIS
            return PrimaryDisorder.METABOLIC_ACIDOSIS

        if tendency == PHStatus.ALKALAEMIA:
            respiratory = pco2 < pco2_range.low
            metabolic = hco3 > hco3_range.high
            if respiratory and metabolic:
                pco2_dev, hco3_dev = AcidBaseEngine._fractional_deviations(pco2, hco3)
                logger.debug("Alkalaemia tie-break: pCO2 dev %.3f vs HCO3 dev %.3f", pco2_dev, hco3_dev)
                if pco2_dev > hco3_dev:
                    return PrimaryDisorder.RESPIRATORY_ALKALOSIS
                return PrimaryDisorder.METABOLIC_ALKALOSIS
            if respiratory:
                return PrimaryDisorder.RESPIRATORY_ALKALOSIS
            return PrimaryDisorder.METABOLIC_ALKALOSIS

        return PrimaryDisorder.NORMAL

    @staticmethod
    def calculate_anion_gap(na: float, cl: float, hco3: float,
                            albumin: Optional[float] = None) -> AnionGapResult:
        """
        AG = Na - (Cl + HCO3).
        Hypoalbuminaemia hides unmeasured anions, so AG is corrected by
        2.5 per g/dL of albumin below 4.
        """
        raw_ag = na - (cl + hco3)
        formula = (
            f"AG = [Na⁺] - ([Cl⁻] + [HCO₃⁻]) = "
            f"{fmt(na)} - ({fmt(cl)} + {fmt(hco3)}) = {fmt(raw_ag)}"
        )

        corrected_ag = raw_ag
        correction_formula = None
        if albumin is not None and albumin < ABC.ALBUMIN_REFERENCE_G_DL:
            correction = ABC.ALBUMIN_CORRECTION_FACTOR * (ABC.ALBUMIN_REFERENCE_G_DL - albumin)
            corrected_ag = raw_ag + correction
            correction_formula = (
                f"Corrected AG = {fmt(raw_ag)} + 2.5 × (4 - {fmt(albumin)}) = {corrected_ag:.1f}"
            )

        if corrected_ag > ABC.AG_HIGH_ABOVE:
            status = AnionGapStatus.HIGH
        elif corrected_ag < ABC.AG_LOW_BELOW:
            status = AnionGapStatus.LOW_NEGATIVE
        else:
            status = AnionGapStatus.NORMAL

        return AnionGapResult(
            value=raw_ag,
            corrected_value=corrected_ag,
            status=status,
            formula=formula,
            correction_formula=correction_formula,
        )

    @staticmethod
    def calculate_osmolar_gap(measured_osmolality: float, na: float, glucose: float,
                              urea: float, ethanol: Optional[float] = None) -> OsmolarGapResult:
        """
        Calculated Osm = 2 x Na + glucose + urea (+ ethanol), all mmol/L.
        Ethanol arrives already converted, so it is added as-is.
        """
        calculated = 2 * na + glucose + urea
        formula = (
            f"Calculated Osm = 2×[Na⁺] + Glucose + Urea = "
            f"2×{fmt(na)} + {fmt(glucose)} + {fmt(urea)}"
        )
        if ethanol is not None and ethanol > 0:
            calculated += ethanol
            formula += f" + {fmt(ethanol)}"
        formula += f" = {calculated:.1f} mOsm/kg"

        gap = measured_osmolality - calculated
        return OsmolarGapResult(
            calculated_osmolality=calculated,
            measured_osmolality=measured_osmolality,
            gap=gap,
            is_elevated=gap > ABC.OSMOLAR_GAP_ELEVATED_ABOVE,
            formula=formula,
        )

    @staticmethod
    def calculate_delta_ratio(anion_gap: float, hco3: float) -> DeltaRatioResult:
        delta_ag = anion_gap - ABC.AG_MIDPOINT
        delta_hco3 = ABC.HCO3_MIDPOINT - hco3

        if delta_hco3 == 0:
            # Undefined ratio: AG rose without any bicarbonate consumption
            return DeltaRatioResult(
                value=0.0,
                status=DeltaRatioStatus.HAGMA,
                interpretation="Pure HAGMA (no HCO3 change)",
                formula=(
                    f"Delta Ratio = ({fmt(anion_gap)} - 12) / (24 - {fmt(hco3)}) = "
                    f"Cannot calculate (no HCO3 change)"
                ),
            )

        ratio = delta_ag / delta_hco3
        formula = (
            f"Delta Ratio = (AG - 12) / (24 - HCO₃⁻) = "
            f"({fmt(anion_gap)} - 12) / (24 - {fmt(hco3)}) = {ratio:.2f}"
        )

        if ratio < ABC.DELTA_PURE_NAGMA_BELOW:
            status = DeltaRatioStatus.PURE_NAGMA_HAGMA
            interpretation = "Pure NAGMA & HAGMA (hyperchloraemic acidosis)"
        elif ratio < ABC.DELTA_MIXED_BELOW:
            status = DeltaRatioStatus.MIXED_NAGMA_HAGMA
            interpretation = "Mixed NAGMA & HAGMA"
        elif ratio <= ABC.DELTA_HAGMA_UPTO:
            status = DeltaRatioStatus.HAGMA
            interpretation = "Pure HAGMA (HAGMA alone or metabolic alkalosis or respiratory acidosis)"
        else:
            status = DeltaRatioStatus.HAGMA_METABOLIC_ALKALOSIS
            interpretation = "HAGMA with metabolic alkalosis or respiratory acidosis"

        return DeltaRatioResult(value=ratio, status=status, interpretation=interpretation, formula=formula)

    @staticmethod
    def validate_henderson_hasselbalch(ph: float, pco2: float, hco3: float) -> HendersonHasselbalchCheck:
        """
        Internal consistency check: pH = 6.1 + log10(HCO3 / (0.03 x pCO2)).
        A disagreement is a data-quality signal (transcription error,
        calculated vs measured HCO3), not an engine failure.
        """
        dissolved_co2 = ABC.HH_CO2_SOLUBILITY * pco2
        if hco3 <= 0 or dissolved_co2 <= 0:
            # log undefined; flag as inconsistent rather than raising
            return HendersonHasselbalchCheck(calculated_ph=None, difference=None, is_valid=False)

        calculated = ABC.HH_PKA + math.log10(hco3 / dissolved_co2)
        difference = abs(ph - calculated)
        return HendersonHasselbalchCheck(
            calculated_ph=round(calculated, 3),
            difference=round(difference, 3),
            is_valid=difference <= ABC.HH_TOLERANCE,
        )

    @staticmethod
    def calculate_corrected_sodium(na: float, glucose: float) -> float:
        """Hyperglycaemia dilutes Na: Na + 0.02 x (glucose mg/dL - 100)."""
        glucose_mg_dl = glucose * ABC.GLUCOSE_MMOL_TO_MG_DL
        return round(na + ABC.SODIUM_PER_MG_DL_GLUCOSE * (glucose_mg_dl - 100), 1)

    @staticmethod
    def calculate_corrected_potassium(potassium: float, ph: float) -> float:
        """Acidaemia shifts K out of cells: K - 0.6 per 0.1 pH below 7.4."""
        adjustment = ABC.POTASSIUM_PER_0_1_PH * ((ABC.PH_NEUTRAL - ph) / 0.1)
        return round(potassium - adjustment, 1)
