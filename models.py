"""
ABG Interpreter: Data Dictionary
================================
This module defines the state space of a blood gas interpretation:
the Input panel (from the form/API), the per-calculation Results and the
aggregate Interpretation handed back to the caller.

NO LOGIC is implemented here beyond type checks and wire rendering.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple


class DataTypeError(TypeError):
    """Raised when inputs are wrong python types (str instead of float)."""
    pass


# --- 1. ENUMS (Standardizing the Outputs) ---

class PHStatus(Enum):
    ACIDAEMIA = "acidaemia"
    NORMAL = "normal"
    ALKALAEMIA = "alkalaemia"


class PrimaryDisorder(Enum):
    RESPIRATORY_ACIDOSIS = "respiratory_acidosis"
    METABOLIC_ACIDOSIS = "metabolic_acidosis"
    RESPIRATORY_ALKALOSIS = "respiratory_alkalosis"
    METABOLIC_ALKALOSIS = "metabolic_alkalosis"
    NORMAL = "normal"


class AnionGapStatus(Enum):
    NORMAL = "normal"
    HIGH = "high"
    LOW_NEGATIVE = "low_negative"


class CompensationStatus(Enum):
    APPROPRIATE = "appropriate"
    INADEQUATE = "inadequate"        # Less response than expected
    EXCESSIVE = "excessive"          # More response than expected
    MIXED_DISORDER = "mixed_disorder"  # Second primary process


class Chronicity(Enum):
    ACUTE = "acute"
    CHRONIC = "chronic"
    UNKNOWN = "unknown"


class DeltaRatioStatus(Enum):
    PURE_NAGMA_HAGMA = "pure_nagma_hagma"            # < 0.4
    MIXED_NAGMA_HAGMA = "mixed_nagma_hagma"          # 0.4 - 0.8
    HAGMA = "hagma"                                  # 0.8 - 2.0
    HAGMA_METABOLIC_ALKALOSIS = "hagma_metabolic_alkalosis"  # > 2.0


def _enum_value(value):
    return value.value if isinstance(value, Enum) else value


# --- 2. INPUT LAYER (What the Form Sends) ---

# Wire (camelCase) key -> field name
INPUT_ALIASES = {
    "pH": "ph",
    "pCO2": "pco2",
    "HCO3": "hco3",
    "Na": "na",
    "Cl": "cl",
    "measuredOsmolality": "measured_osmolality",
    "hasKetones": "has_ketones",
    "hasVisionChanges": "has_vision_changes",
    "hasCalciumOxalate": "has_calcium_oxalate",
}


@dataclass(frozen=True)
class BloodGasInput:
    """
    The raw panel as entered at the bedside.
    Every field is optional; the engine degrades gracefully.
    Concentrations are mmol/L (unit conversion happens before this point).
    """
    # Blood gas
    ph: Optional[float] = None
    pco2: Optional[float] = None            # mmHg
    hco3: Optional[float] = None            # mmol/L

    # Electrolytes
    na: Optional[float] = None
    cl: Optional[float] = None
    albumin: Optional[float] = None         # g/dL
    potassium: Optional[float] = None

    # Osmolar gap inputs
    measured_osmolality: Optional[float] = None  # mOsm/kg
    glucose: Optional[float] = None
    urea: Optional[float] = None
    ethanol: Optional[float] = None

    # Toxic alcohol screening questions
    has_ketones: Optional[bool] = None
    has_vision_changes: Optional[bool] = None
    has_calcium_oxalate: Optional[bool] = None

    def __post_init__(self):
        """Type safety only (prevent string math crashes). No range checks."""
        for f in fields(self):
            val = getattr(self, f.name)
            if val is None:
                continue
            if f.name.startswith("has_"):
                if not isinstance(val, bool):
                    raise DataTypeError(f"Field '{f.name}' must be boolean, got {type(val)}")
            elif isinstance(val, bool) or not isinstance(val, (int, float)):
                raise DataTypeError(f"Field '{f.name}' must be numeric, got {type(val)}")

    @classmethod
    def from_dict(cls, data: dict) -> "BloodGasInput":
        """Accepts snake_case field names or the camelCase wire keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, val in data.items():
            name = INPUT_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = val
        return cls(**kwargs)

    def to_dict(self) -> dict:
        reverse = {v: k for k, v in INPUT_ALIASES.items()}
        return {
            reverse.get(f.name, f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


# --- 3. CALCULATION RESULTS ---

@dataclass(frozen=True)
class AnionGapResult:
    value: float                 # Raw AG
    corrected_value: float       # Albumin-corrected AG (== value if no correction)
    status: AnionGapStatus
    formula: str
    correction_formula: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "correctedValue": self.corrected_value,
            "status": self.status.value,
            "formula": self.formula,
            "correctionFormula": self.correction_formula,
        }


@dataclass(frozen=True)
class OsmolarGapResult:
    calculated_osmolality: float
    measured_osmolality: float
    gap: float
    is_elevated: bool
    formula: str

    def to_dict(self) -> dict:
        return {
            "calculatedOsmolality": self.calculated_osmolality,
            "measuredOsmolality": self.measured_osmolality,
            "gap": self.gap,
            "isElevated": self.is_elevated,
            "formula": self.formula,
        }


@dataclass(frozen=True)
class CompensationResult:
    """
    Shared by Winter's formula, metabolic-alkalosis and respiratory rules.
    expected_* / actual_value are pCO2 (mmHg) for the metabolic rules and
    HCO3 (mmol/L) for the respiratory rules.
    """
    expected_value: float
    expected_low: float
    expected_high: float
    actual_value: float
    status: CompensationStatus
    rule: str
    interpretation: str
    chronicity: Chronicity = Chronicity.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "expectedValue": self.expected_value,
            "expectedLow": self.expected_low,
            "expectedHigh": self.expected_high,
            "actualValue": self.actual_value,
            "status": self.status.value,
            "chronicity": self.chronicity.value,
            "rule": self.rule,
            "interpretation": self.interpretation,
        }


@dataclass(frozen=True)
class DeltaRatioResult:
    value: float
    status: DeltaRatioStatus
    interpretation: str
    formula: str

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "status": self.status.value,
            "interpretation": self.interpretation,
            "formula": self.formula,
        }


@dataclass(frozen=True)
class HendersonHasselbalchCheck:
    calculated_ph: Optional[float]   # None when log10 is undefined (HCO3 or pCO2 <= 0)
    difference: Optional[float]
    is_valid: bool

    def to_dict(self) -> dict:
        return {
            "calculatedPH": self.calculated_ph,
            "difference": self.difference,
            "isValid": self.is_valid,
        }


@dataclass(frozen=True)
class InterpretationWarnings:
    """Tracks non-critical issues that the clinician must know."""
    missing_optional_inputs: Tuple[str, ...] = ()
    henderson_hasselbalch: Optional[HendersonHasselbalchCheck] = None
    low_calculated_osmolality: bool = False
    albumin_corrected: bool = False

    def to_dict(self) -> dict:
        hh = self.henderson_hasselbalch
        return {
            "missingOptionalInputs": list(self.missing_optional_inputs),
            "hendersonHasselbalch": hh.to_dict() if hh else None,
            "lowCalculatedOsmolality": self.low_calculated_osmolality,
            "albuminCorrected": self.albumin_corrected,
        }


# --- 4. OUTPUT LAYER (What the Clinician Sees) ---

@dataclass(frozen=True)
class BloodGasInterpretation:
    input: BloodGasInput
    ph_status: PHStatus
    primary_disorder: PrimaryDisorder
    summary: str

    anion_gap: Optional[AnionGapResult] = None
    osmolar_gap: Optional[OsmolarGapResult] = None
    winters_formula: Optional[CompensationResult] = None
    delta_ratio: Optional[DeltaRatioResult] = None
    compensation: Optional[CompensationResult] = None

    secondary_disorders: Tuple[str, ...] = ()
    causes: Tuple[str, ...] = ()
    mnemonic: Optional[str] = None
    toxic_alcohol_suggestion: Optional[str] = None

    corrected_sodium: Optional[float] = None
    corrected_potassium: Optional[float] = None
    warnings: InterpretationWarnings = field(default_factory=InterpretationWarnings)

    def to_dict(self) -> dict:
        """camelCase wire shape consumed by the wizard/flowchart UI."""
        def _opt(result):
            return result.to_dict() if result is not None else None

        return {
            "input": self.input.to_dict(),
            "pHStatus": _enum_value(self.ph_status),
            "primaryDisorder": _enum_value(self.primary_disorder),
            "anionGap": _opt(self.anion_gap),
            "osmolarGap": _opt(self.osmolar_gap),
            "wintersFormula": _opt(self.winters_formula),
            "deltaRatio": _opt(self.delta_ratio),
            "compensation": _opt(self.compensation),
            "secondaryDisorders": list(self.secondary_disorders),
            "causes": list(self.causes),
            "mnemonic": self.mnemonic,
            "toxicAlcoholSuggestion": self.toxic_alcohol_suggestion,
            "correctedSodium": self.corrected_sodium,
            "correctedPotassium": self.corrected_potassium,
            "warnings": self.warnings.to_dict(),
            "summary": self.summary,
        }


@dataclass
class AuditLog:
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    action: str = "abg_interpretation"
    inputs_hash: int = 0
    model_version: str = ""


@dataclass
class InterpretationOutcome:
    """Standardized response format for API/UI."""
    success: bool
    interpretation: Optional[BloodGasInterpretation]
    errors: List[str]
    audit_log: Optional[AuditLog] = None
