# compensation.py
import logging
from types import MappingProxyType
from typing import Optional

from models import PrimaryDisorder, CompensationStatus, Chronicity, CompensationResult
from constants import ACID_BASE_CONSTANTS as ABC
from core_acid_base import fmt

logger = logging.getLogger(__name__)

# (primary disorder, compensation status) -> concurrent disorder it implies
SECONDARY_DISORDERS = MappingProxyType({
    (PrimaryDisorder.METABOLIC_ACIDOSIS, CompensationStatus.EXCESSIVE): "Concurrent respiratory alkalosis",
    (PrimaryDisorder.METABOLIC_ACIDOSIS, CompensationStatus.INADEQUATE): "Concurrent respiratory acidosis",
    (PrimaryDisorder.METABOLIC_ACIDOSIS, CompensationStatus.MIXED_DISORDER): "Concurrent respiratory acidosis",
    (PrimaryDisorder.METABOLIC_ALKALOSIS, CompensationStatus.EXCESSIVE): "Concurrent respiratory acidosis",
    (PrimaryDisorder.METABOLIC_ALKALOSIS, CompensationStatus.INADEQUATE): "Concurrent respiratory alkalosis",
    (PrimaryDisorder.METABOLIC_ALKALOSIS, CompensationStatus.MIXED_DISORDER): "Concurrent respiratory alkalosis",
    (PrimaryDisorder.RESPIRATORY_ACIDOSIS, CompensationStatus.EXCESSIVE): "Concurrent metabolic alkalosis",
    (PrimaryDisorder.RESPIRATORY_ACIDOSIS, CompensationStatus.INADEQUATE): "Concurrent metabolic acidosis",
    (PrimaryDisorder.RESPIRATORY_ALKALOSIS, CompensationStatus.EXCESSIVE): "Concurrent metabolic acidosis",
    (PrimaryDisorder.RESPIRATORY_ALKALOSIS, CompensationStatus.INADEQUATE): "Concurrent metabolic alkalosis",
})


class CompensationAnalyzer:
    """
    Expected-compensation rules for each primary disorder.
    Metabolic disorders are judged on pCO2, respiratory ones on HCO3.
    """

    @staticmethod
    def winters_formula(hco3: float, actual_pco2: float) -> CompensationResult:
        """Metabolic acidosis: expected pCO2 = 1.5 x HCO3 + 8 (+/- 2)."""
        expected = ABC.WINTERS_SLOPE * hco3 + ABC.WINTERS_INTERCEPT
        low = expected - ABC.WINTERS_TOLERANCE
        high = expected + ABC.WINTERS_TOLERANCE
        rule = (
            f"Expected pCO₂ = (1.5 × {fmt(hco3)}) + 8 ± 2 = "
            f"{expected:.1f} ({low:.1f} - {high:.1f} mmHg)"
        )

        if low <= actual_pco2 <= high:
            status = CompensationStatus.APPROPRIATE
            interpretation = "Compensated metabolic acidosis"
        elif actual_pco2 < low:
            status = CompensationStatus.EXCESSIVE
            interpretation = "Metabolic acidosis with secondary respiratory alkalosis"
        elif actual_pco2 < 45:
            # Above the band but not yet hypercapnic
            status = CompensationStatus.INADEQUATE
            interpretation = "Uncompensated metabolic acidosis"
        else:
            status = CompensationStatus.MIXED_DISORDER
            interpretation = "Combined metabolic acidosis and respiratory acidosis"

        return CompensationResult(
            expected_value=expected,
            expected_low=low,
            expected_high=high,
            actual_value=actual_pco2,
            status=status,
            rule=rule,
            interpretation=interpretation,
        )

    @staticmethod
    def metabolic_alkalosis(hco3: float, actual_pco2: float) -> CompensationResult:
        """Metabolic alkalosis: expected pCO2 = 0.7 x HCO3 + 20 (+/- 5)."""
        expected = ABC.MET_ALK_SLOPE * hco3 + ABC.MET_ALK_INTERCEPT
        low = expected - ABC.MET_ALK_TOLERANCE
        high = expected + ABC.MET_ALK_TOLERANCE
        rule = (
            f"Expected pCO₂ = (0.7 × {fmt(hco3)}) + 20 ± 5 = "
            f"{expected:.1f} ({low:.1f} - {high:.1f} mmHg)"
        )

        if low <= actual_pco2 <= high:
            status = CompensationStatus.APPROPRIATE
            interpretation = "Compensated metabolic alkalosis"
        elif actual_pco2 > high:
            status = CompensationStatus.EXCESSIVE
            interpretation = "Primary metabolic alkalosis with secondary respiratory acidosis"
        elif actual_pco2 >= 35:
            status = CompensationStatus.INADEQUATE
            interpretation = "Uncompensated metabolic alkalosis"
        else:
            status = CompensationStatus.MIXED_DISORDER
            interpretation = "Combined metabolic alkalosis and respiratory alkalosis"

        return CompensationResult(
            expected_value=expected,
            expected_low=low,
            expected_high=high,
            actual_value=actual_pco2,
            status=status,
            rule=rule,
            interpretation=interpretation,
        )

    @staticmethod
    def respiratory(disorder: PrimaryDisorder, pco2: float, hco3: float) -> CompensationResult:
        """
        Acute vs chronic metabolic response to a respiratory disorder.

        Per 10 mmHg change in pCO2, HCO3 moves by:
            acidosis   +1 (acute)  +4 (chronic)
            alkalosis  -2 (acute)  -5 (chronic)
        each +/- 2 mmol/L. expected_low/expected_high are the acute and
        chronic expected HCO3 (ordered), expected_value is the one matching
        the assigned chronicity (chronic when undetermined).
        """
        if disorder == PrimaryDisorder.RESPIRATORY_ACIDOSIS:
            acute_per_10 = ABC.RESP_ACIDOSIS_ACUTE_PER_10
            chronic_per_10 = ABC.RESP_ACIDOSIS_CHRONIC_PER_10
            direction = 1.0
            name = "respiratory acidosis"
        elif disorder == PrimaryDisorder.RESPIRATORY_ALKALOSIS:
            acute_per_10 = ABC.RESP_ALKALOSIS_ACUTE_PER_10
            chronic_per_10 = ABC.RESP_ALKALOSIS_CHRONIC_PER_10
            direction = -1.0
            name = "respiratory alkalosis"
        else:
            raise ValueError(f"Not a respiratory disorder: {disorder}")

        steps = abs(pco2 - ABC.PCO2_MIDPOINT) / 10.0
        acute_change = steps * acute_per_10
        chronic_change = steps * chronic_per_10
        actual_change = hco3 - ABC.HCO3_MIDPOINT
        tol = ABC.RESP_TOLERANCE

        in_acute = abs(actual_change - acute_change) <= tol
        in_chronic = abs(actual_change - chronic_change) <= tol

        if in_acute and in_chronic:
            status, chronicity = CompensationStatus.APPROPRIATE, Chronicity.UNKNOWN
            interpretation = f"Compensated {name} (acute and chronic ranges overlap)"
        elif in_chronic:
            status, chronicity = CompensationStatus.APPROPRIATE, Chronicity.CHRONIC
            interpretation = f"Compensated chronic {name}"
        elif in_acute:
            status, chronicity = CompensationStatus.APPROPRIATE, Chronicity.ACUTE
            interpretation = f"Acute {name} with appropriate compensation"
        elif direction * (actual_change - chronic_change) > tol:
            # Overshoots even the chronic response
            status, chronicity = CompensationStatus.EXCESSIVE, Chronicity.CHRONIC
            secondary = "alkalosis" if direction > 0 else "acidosis"
            interpretation = f"Primary {name} with secondary metabolic {secondary}"
        elif direction * (actual_change - acute_change) < -tol:
            # Falls short of even the acute response
            status, chronicity = CompensationStatus.INADEQUATE, Chronicity.ACUTE
            secondary = "acidosis" if direction > 0 else "alkalosis"
            interpretation = f"Acute uncompensated {name} with metabolic {secondary}"
        else:
            status, chronicity = CompensationStatus.APPROPRIATE, Chronicity.UNKNOWN
            interpretation = f"Partially compensated {name} (acute-on-chronic or evolving)"

        acute_hco3 = ABC.HCO3_MIDPOINT + acute_change
        chronic_hco3 = ABC.HCO3_MIDPOINT + chronic_change
        expected = acute_hco3 if chronicity == Chronicity.ACUTE else chronic_hco3
        rule = (
            f"ΔHCO₃⁻ per 10 mmHg ΔpCO₂: acute {acute_per_10:+g}, chronic {chronic_per_10:+g} (±2). "
            f"Expected HCO₃⁻ acute {acute_hco3:.1f}, chronic {chronic_hco3:.1f} mmol/L"
        )
        logger.debug("%s: actual ΔHCO3 %.1f -> %s/%s", name, actual_change, status.value, chronicity.value)

        return CompensationResult(
            expected_value=expected,
            expected_low=min(acute_hco3, chronic_hco3),
            expected_high=max(acute_hco3, chronic_hco3),
            actual_value=hco3,
            status=status,
            rule=rule,
            interpretation=interpretation,
            chronicity=chronicity,
        )

    @staticmethod
    def secondary_disorder(primary: PrimaryDisorder, status: CompensationStatus) -> Optional[str]:
        return SECONDARY_DISORDERS.get((primary, status))
