# causes.py
from typing import Optional, Tuple

from models import PrimaryDisorder, AnionGapStatus, Chronicity, BloodGasInput
from constants import CAUSE_LIBRARY, DISORDER_DISPLAY_NAMES, ACID_BASE_CONSTANTS as ABC


class CauseLookup:
    """Differential diagnosis: pure table lookups, no arithmetic."""

    @staticmethod
    def _entry(disorder: PrimaryDisorder,
               anion_gap_status: Optional[AnionGapStatus] = None,
               chronicity: Optional[Chronicity] = None):
        if disorder == PrimaryDisorder.RESPIRATORY_ACIDOSIS:
            # Anything not proven chronic is treated as acute
            key = Chronicity.CHRONIC if chronicity == Chronicity.CHRONIC else Chronicity.ACUTE
            return CAUSE_LIBRARY.get(disorder, key)
        if disorder == PrimaryDisorder.METABOLIC_ACIDOSIS:
            if anion_gap_status in (AnionGapStatus.HIGH, AnionGapStatus.LOW_NEGATIVE):
                return CAUSE_LIBRARY.get(disorder, anion_gap_status)
            return CAUSE_LIBRARY.get(disorder, AnionGapStatus.NORMAL)
        return CAUSE_LIBRARY.get(disorder)

    @staticmethod
    def get_causes(disorder: PrimaryDisorder,
                   anion_gap_status: Optional[AnionGapStatus] = None,
                   chronicity: Optional[Chronicity] = None) -> Tuple[str, ...]:
        entry = CauseLookup._entry(disorder, anion_gap_status, chronicity)
        return entry.causes if entry else ()

    @staticmethod
    def get_mnemonic(disorder: PrimaryDisorder,
                     anion_gap_status: Optional[AnionGapStatus] = None) -> Optional[str]:
        # The low/negative AG list has no mnemonic; NAGMA's is shown instead
        if disorder == PrimaryDisorder.METABOLIC_ACIDOSIS and anion_gap_status != AnionGapStatus.HIGH:
            anion_gap_status = AnionGapStatus.NORMAL
        entry = CauseLookup._entry(disorder, anion_gap_status)
        return entry.mnemonic if entry else None

    @staticmethod
    def format_disorder_name(disorder: PrimaryDisorder) -> str:
        return DISORDER_DISPLAY_NAMES[disorder]

    @staticmethod
    def screen_toxic_alcohols(panel: BloodGasInput, osmolar_gap_elevated: bool,
                              has_metabolic_acidosis: bool,
                              anion_gap_status: Optional[AnionGapStatus]) -> Optional[str]:
        """
        Walks the toxic-alcohol decision tree for an elevated osmolar gap.
        Returns None when the gap is normal or a screening question that
        decides the branch is unanswered.
        """
        if not osmolar_gap_elevated:
            return None

        if not has_metabolic_acidosis:
            if panel.has_ketones is None:
                return None
            return "Isopropyl alcohol" if panel.has_ketones else "Ethanol"

        if anion_gap_status != AnionGapStatus.HIGH:
            return "Propylene glycol"

        if panel.glucose is not None and panel.glucose > ABC.DKA_GLUCOSE_ABOVE_MMOL:
            return "Diabetic ketoacidosis"

        if panel.has_vision_changes is None:
            return None
        if panel.has_vision_changes:
            return "Methanol"

        if panel.has_calcium_oxalate is None:
            return None
        if panel.has_calcium_oxalate:
            return "Ethylene glycol"
        return "Mixed alcohol ingestion or late methanol stage"
