"""
ABG Interpreter: Reference Data
===============================
Normal ranges, decision thresholds and the differential-diagnosis tables.

NO LOGIC is implemented here. Everything is built once at import time and
exposed read-only.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Tuple

from models import AnionGapStatus, Chronicity, PrimaryDisorder

VERSION = "1.0.0"


@dataclass(frozen=True)
class ReferenceRange:
    low: float
    high: float
    unit: str = ""
    normal: Optional[float] = None   # Midpoint used by the formulas (e.g. AG 12)

    def contains(self, value: float) -> bool:
        return self.low <= value <= self.high


NORMAL_RANGES = MappingProxyType({
    "pH": ReferenceRange(7.35, 7.45, normal=7.40),
    "pCO2": ReferenceRange(35, 45, "mmHg", normal=40),
    "HCO3": ReferenceRange(22, 26, "mmol/L", normal=24),
    "Na": ReferenceRange(135, 145, "mmol/L"),
    "K": ReferenceRange(3.5, 5.0, "mmol/L"),
    "Cl": ReferenceRange(98, 107, "mmol/L"),
    "anionGap": ReferenceRange(8, 16, "mEq/L", normal=12),
    "osmolarGap": ReferenceRange(-10, 10, "mOsm/kg"),
    "albumin": ReferenceRange(3.5, 5.0, "g/dL", normal=4.0),
})


class ACID_BASE_CONSTANTS:
    # pH
    PH_ACIDAEMIA_BELOW = 7.35
    PH_ALKALAEMIA_ABOVE = 7.45
    PH_NEUTRAL = 7.40

    # Midpoints for fractional deviation & delta calculations
    PCO2_MIDPOINT = 40.0
    HCO3_MIDPOINT = 24.0
    AG_MIDPOINT = 12.0

    # Anion gap
    AG_HIGH_ABOVE = 16.0
    AG_LOW_BELOW = 3.0
    ALBUMIN_REFERENCE_G_DL = 4.0
    ALBUMIN_CORRECTION_FACTOR = 2.5   # AG rises 2.5 per 1 g/dL albumin lost

    # Osmolar gap
    OSMOLAR_GAP_ELEVATED_ABOVE = 10.0
    LOW_CALCULATED_OSMOLALITY = 270.0  # mOsm/kg

    # Winter's formula: pCO2 = 1.5 x HCO3 + 8 (+/- 2)
    WINTERS_SLOPE = 1.5
    WINTERS_INTERCEPT = 8.0
    WINTERS_TOLERANCE = 2.0

    # Metabolic alkalosis: pCO2 = 0.7 x HCO3 + 20 (+/- 5)
    MET_ALK_SLOPE = 0.7
    MET_ALK_INTERCEPT = 20.0
    MET_ALK_TOLERANCE = 5.0

    # Respiratory: HCO3 change per 10 mmHg pCO2 change
    RESP_ACIDOSIS_ACUTE_PER_10 = 1.0
    RESP_ACIDOSIS_CHRONIC_PER_10 = 4.0
    RESP_ALKALOSIS_ACUTE_PER_10 = -2.0
    RESP_ALKALOSIS_CHRONIC_PER_10 = -5.0
    RESP_TOLERANCE = 2.0

    # Delta ratio bands
    DELTA_PURE_NAGMA_BELOW = 0.4
    DELTA_MIXED_BELOW = 0.8
    DELTA_HAGMA_UPTO = 2.0

    # Henderson-Hasselbalch: pH = 6.1 + log10(HCO3 / (0.03 x pCO2))
    HH_PKA = 6.1
    HH_CO2_SOLUBILITY = 0.03
    HH_TOLERANCE = 0.03

    # Electrolyte corrections
    GLUCOSE_MMOL_TO_MG_DL = 18.01802
    SODIUM_PER_MG_DL_GLUCOSE = 0.02
    POTASSIUM_PER_0_1_PH = 0.6

    # Toxic alcohol screen
    DKA_GLUCOSE_ABOVE_MMOL = 19.4


@dataclass(frozen=True)
class CauseEntry:
    causes: Tuple[str, ...]
    mnemonic: Optional[str] = None


class CAUSE_LIBRARY:
    """
    The differential-diagnosis tables.
    Keyed by (disorder, sub-key); sub-key is an AnionGapStatus, a Chronicity
    or None for disorders with a single list.
    """
    SPECS = MappingProxyType({
        (PrimaryDisorder.RESPIRATORY_ACIDOSIS, Chronicity.ACUTE): CauseEntry(
            causes=(
                "CNS depression (head injury, stroke, drugs)",
                "Respiratory depression (myopathy, spinal cord injury, drugs)",
                "Hypoventilation (pain, chest wall injury/deformity, raised intra-abdominal pressures)",
                "Respiratory failure (pneumonia, pneumothorax, oedema, bronchial obstruction)",
                "Airway obstruction",
            ),
        ),
        (PrimaryDisorder.RESPIRATORY_ACIDOSIS, Chronicity.CHRONIC): CauseEntry(
            causes=(
                "COPD",
                "Restrictive lung disease",
            ),
        ),
        (PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.NORMAL): CauseEntry(
            mnemonic="USED CRAP",
            causes=(
                "Ureterostomy",
                "Small bowel fistula",
                "Extra chloride",
                "Diarrhoea",
                "Carbonic anhydrase inhibitor",
                "Renal tubular acidosis",
                "Addison's disease",
                "Pancreatic duodenal fistula",
            ),
        ),
        (PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.HIGH): CauseEntry(
            mnemonic="Left Total Knee Replacement / CAT MUD PILES",
            causes=(
                "Lactate, Toxins, Ketones, Renal failure",
                "Carbon monoxide, cyanide",
                "Alcoholic ketoacidosis",
                "Toluene",
                "Methanol, metformin (phenformin)",
                "Uraemia",
                "Diabetic ketoacidosis",
                "Paracetamol, pyroglutamic acid, paraldehyde, propylene glycol",
                "Isoniazid, iron",
                "Lactate (L-Lactate, D-Lactate)",
                "Ethanol, ethylene glycol",
                "Salicylates",
            ),
        ),
        (PrimaryDisorder.METABOLIC_ACIDOSIS, AnionGapStatus.LOW_NEGATIVE): CauseEntry(
            causes=(
                "Unmeasured anions (albumin, dilution)",
                "Unmeasured cations (Ca, Mg, K, lithium, paraproteinaemia)",
                "Pseudohyperchloraemia (bromide, iodide, salicylates, thiocyanate)",
                "Analytical error (Na, lipids, hyperviscosity)",
            ),
        ),
        (PrimaryDisorder.RESPIRATORY_ALKALOSIS, None): CauseEntry(
            mnemonic="CHAMPS",
            causes=(
                "CNS disease (stroke, haemorrhage, psychogenic)",
                "Hypoxia (Pneumonia, PE, asthma, altitude)",
                "Anxiety, pain",
                "Mechanical or excessive ventilation",
                "Progesterone, pregnancy",
                "Salicylates and sepsis",
            ),
        ),
        (PrimaryDisorder.METABOLIC_ALKALOSIS, None): CauseEntry(
            mnemonic="CLEVER PD",
            causes=(
                "Contraction (volume contraction)",
                "Liquorice, laxative abuse",
                "Endocrine (Conn's, Cushing's)",
                "Vomiting, GI losses",
                "Excess alkali (antacids)",
                "Renal (Bartter's)",
                "Post-hypercapnia",
                "Diuretics",
            ),
        ),
    })

    @staticmethod
    def get(disorder: PrimaryDisorder, sub_key=None) -> Optional[CauseEntry]:
        return CAUSE_LIBRARY.SPECS.get((disorder, sub_key))


DISORDER_DISPLAY_NAMES = MappingProxyType({
    PrimaryDisorder.RESPIRATORY_ACIDOSIS: "Respiratory Acidosis",
    PrimaryDisorder.METABOLIC_ACIDOSIS: "Metabolic Acidosis",
    PrimaryDisorder.RESPIRATORY_ALKALOSIS: "Respiratory Alkalosis",
    PrimaryDisorder.METABOLIC_ALKALOSIS: "Metabolic Alkalosis",
    PrimaryDisorder.NORMAL: "Normal",
})
