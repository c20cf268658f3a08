"""
ABG Interpreter: Interpretation Orchestrator
============================================
Sequences the engine: classify -> gaps -> compensation -> delta ratio ->
causes -> summary. Stateless; the same panel always yields an equal
interpretation.
"""

import logging
from types import MappingProxyType
from typing import List, Optional

from models import (
    BloodGasInput,
    BloodGasInterpretation,
    InterpretationOutcome,
    AuditLog,
    DataTypeError,
    PHStatus,
    PrimaryDisorder,
    AnionGapStatus,
    Chronicity,
    DeltaRatioStatus,
)
from constants import VERSION, ACID_BASE_CONSTANTS as ABC
from core_acid_base import AcidBaseEngine
from compensation import CompensationAnalyzer
from causes import CauseLookup
from data_quality import DataQualitySupervisor

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_MESSAGE = "Insufficient data for interpretation. pH, pCO2, and HCO3 are required."

CONCURRENT_METABOLIC_ACIDOSIS = "Concurrent metabolic acidosis"
CONCURRENT_HAGMA = "Concurrent high anion gap metabolic acidosis"
CONCURRENT_NAGMA = "Concurrent normal anion gap metabolic acidosis"
CONCURRENT_METABOLIC_ALKALOSIS = "Concurrent metabolic alkalosis"

DELTA_RATIO_SECONDARY = MappingProxyType({
    DeltaRatioStatus.PURE_NAGMA_HAGMA: CONCURRENT_NAGMA,
    DeltaRatioStatus.MIXED_NAGMA_HAGMA: CONCURRENT_NAGMA,
    DeltaRatioStatus.HAGMA_METABOLIC_ALKALOSIS: CONCURRENT_METABOLIC_ALKALOSIS,
})

ANION_GAP_QUALIFIER = MappingProxyType({
    AnionGapStatus.HIGH: "HAGMA",
    AnionGapStatus.NORMAL: "NAGMA",
    AnionGapStatus.LOW_NEGATIVE: "Low/Negative AG",
})


def _add(secondary: List[str], disorder: Optional[str]):
    if disorder and disorder not in secondary:
        secondary.append(disorder)


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def build_summary(primary: PrimaryDisorder, strict_normal: bool,
                  anion_gap_status: Optional[AnionGapStatus],
                  chronicity: Optional[Chronicity],
                  secondary: List[str]) -> str:
    concurrent = " and ".join(_lower_first(s) for s in secondary)

    if strict_normal:
        summary = "No acid-base disturbance"
        if concurrent:
            summary += f" on blood gas, but {concurrent}"
        return summary

    summary = CauseLookup.format_disorder_name(primary)
    if chronicity in (Chronicity.ACUTE, Chronicity.CHRONIC):
        summary = f"{chronicity.value.capitalize()} {summary}"
    if primary == PrimaryDisorder.METABOLIC_ACIDOSIS and anion_gap_status is not None:
        summary += f" ({ANION_GAP_QUALIFIER[anion_gap_status]})"
    if concurrent:
        summary += f" with {concurrent}"
    return summary


def interpret_blood_gas(panel: BloodGasInput) -> Optional[BloodGasInterpretation]:
    """
    Full interpretation of one panel.
    Returns None (insufficient data) when pH, pCO2 or HCO3 is missing.
    """
    if panel.ph is None or panel.pco2 is None or panel.hco3 is None:
        return None

    ph, pco2, hco3 = panel.ph, panel.pco2, panel.hco3

    # 1. Classification
    ph_status = AcidBaseEngine.determine_ph_status(ph)
    primary = AcidBaseEngine.determine_primary_disorder(ph, pco2, hco3)
    strict_normal = AcidBaseEngine.is_strict_normal(ph, pco2, hco3)
    logger.debug("pH %s -> %s, primary %s", ph, ph_status.value, primary.value)

    # 2. Compensation (dispatch by primary disorder)
    winters = None
    compensation = None
    if primary == PrimaryDisorder.METABOLIC_ACIDOSIS:
        winters = CompensationAnalyzer.winters_formula(hco3, pco2)
    elif primary == PrimaryDisorder.METABOLIC_ALKALOSIS:
        compensation = CompensationAnalyzer.metabolic_alkalosis(hco3, pco2)
    elif primary in (PrimaryDisorder.RESPIRATORY_ACIDOSIS, PrimaryDisorder.RESPIRATORY_ALKALOSIS):
        compensation = CompensationAnalyzer.respiratory(primary, pco2, hco3)

    secondary: List[str] = []
    response = winters or compensation
    if response is not None:
        _add(secondary, CompensationAnalyzer.secondary_disorder(primary, response.status))

    # 3. Anion gap: metabolic acidosis (primary or concurrent), or a normal
    #    pH that may be hiding a gap
    anion_gap = None
    if panel.na is not None and panel.cl is not None:
        suspect_acidosis = (
            primary == PrimaryDisorder.METABOLIC_ACIDOSIS
            or CONCURRENT_METABOLIC_ACIDOSIS in secondary
        )
        if suspect_acidosis or ph_status == PHStatus.NORMAL:
            anion_gap = AcidBaseEngine.calculate_anion_gap(panel.na, panel.cl, hco3, panel.albumin)

    # 4. Delta ratio (only for a high gap with no bicarbonate excess;
    #    HCO3 above 24 would give a negative ratio)
    delta_ratio = None
    if anion_gap is not None and anion_gap.status == AnionGapStatus.HIGH:
        if primary != PrimaryDisorder.METABOLIC_ACIDOSIS:
            if CONCURRENT_METABOLIC_ACIDOSIS in secondary:
                secondary[secondary.index(CONCURRENT_METABOLIC_ACIDOSIS)] = CONCURRENT_HAGMA
            else:
                _add(secondary, CONCURRENT_HAGMA)
        if hco3 <= ABC.HCO3_MIDPOINT:
            delta_ratio = AcidBaseEngine.calculate_delta_ratio(anion_gap.corrected_value, hco3)
            _add(secondary, DELTA_RATIO_SECONDARY.get(delta_ratio.status))

    # 5. Osmolar gap
    osmolar_gap = None
    if (panel.measured_osmolality is not None and panel.na is not None
            and panel.glucose is not None and panel.urea is not None):
        osmolar_gap = AcidBaseEngine.calculate_osmolar_gap(
            panel.measured_osmolality, panel.na, panel.glucose, panel.urea, panel.ethanol
        )

    # 6. Differential
    ag_status = anion_gap.status if anion_gap is not None else None
    chronicity = compensation.chronicity if compensation is not None else None
    causes = CauseLookup.get_causes(primary, ag_status, chronicity)
    mnemonic = CauseLookup.get_mnemonic(primary, ag_status)

    toxic_alcohol = None
    if osmolar_gap is not None:
        has_metabolic_acidosis = (
            primary == PrimaryDisorder.METABOLIC_ACIDOSIS
            or any("metabolic acidosis" in s for s in secondary)
        )
        toxic_alcohol = CauseLookup.screen_toxic_alcohols(
            panel, osmolar_gap.is_elevated, has_metabolic_acidosis, ag_status
        )

    # 7. Electrolyte corrections
    corrected_sodium = None
    if panel.na is not None and panel.glucose is not None:
        corrected_sodium = AcidBaseEngine.calculate_corrected_sodium(panel.na, panel.glucose)
    corrected_potassium = None
    if panel.potassium is not None:
        corrected_potassium = AcidBaseEngine.calculate_corrected_potassium(panel.potassium, ph)

    warnings = DataQualitySupervisor.check_panel(panel, anion_gap, osmolar_gap)

    summary = build_summary(primary, strict_normal, ag_status, chronicity, secondary)

    return BloodGasInterpretation(
        input=panel,
        ph_status=ph_status,
        primary_disorder=primary,
        summary=summary,
        anion_gap=anion_gap,
        osmolar_gap=osmolar_gap,
        winters_formula=winters,
        delta_ratio=delta_ratio,
        compensation=compensation,
        secondary_disorders=tuple(secondary),
        causes=causes,
        mnemonic=mnemonic,
        toxic_alcohol_suggestion=toxic_alcohol,
        corrected_sodium=corrected_sodium,
        corrected_potassium=corrected_potassium,
        warnings=warnings,
    )


def generate_interpretation(data: dict) -> InterpretationOutcome:
    """
    SAFE FACTORY: The main entry point for the UI/API.
    Builds the panel from a plain dict and reports failures as errors
    instead of raising.
    """
    audit = AuditLog(inputs_hash=hash(str(sorted(data.items()))), model_version=VERSION)
    try:
        panel = BloodGasInput.from_dict(data)
    except DataTypeError as e:
        return InterpretationOutcome(success=False, interpretation=None, errors=[str(e)], audit_log=audit)

    interpretation = interpret_blood_gas(panel)
    if interpretation is None:
        return InterpretationOutcome(
            success=False, interpretation=None, errors=[INSUFFICIENT_DATA_MESSAGE], audit_log=audit
        )
    return InterpretationOutcome(success=True, interpretation=interpretation, errors=[], audit_log=audit)
