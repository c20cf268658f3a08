# data_quality.py
import logging
from typing import Optional

from models import BloodGasInput, AnionGapResult, OsmolarGapResult, InterpretationWarnings
from constants import ACID_BASE_CONSTANTS as ABC
from core_acid_base import AcidBaseEngine

logger = logging.getLogger(__name__)

OSMOLAR_GAP_FIELDS = (
    ("na", "Na"),
    ("glucose", "Glucose"),
    ("urea", "Urea"),
    ("measured_osmolality", "Measured osmolality"),
)


class DataQualitySupervisor:
    """
    Non-blocking checks on the panel.
    Returns an InterpretationWarnings object (flags), never raises.
    """

    @staticmethod
    def check_panel(panel: BloodGasInput,
                    anion_gap: Optional[AnionGapResult],
                    osmolar_gap: Optional[OsmolarGapResult]) -> InterpretationWarnings:
        missing = []

        # 1. Anion gap inputs
        if panel.na is None:
            missing.append("Na")
        if panel.cl is None:
            missing.append("Cl")
        if panel.albumin is None:
            missing.append("Albumin")

        # 2. Osmolar gap inputs (only worth reporting if some were given)
        osm_given = [label for name, label in OSMOLAR_GAP_FIELDS if getattr(panel, name) is not None]
        if osm_given:
            for name, label in OSMOLAR_GAP_FIELDS:
                if getattr(panel, name) is None and label not in missing:
                    missing.append(label)

        # 3. Henderson-Hasselbalch consistency
        hh = AcidBaseEngine.validate_henderson_hasselbalch(panel.ph, panel.pco2, panel.hco3)
        if not hh.is_valid:
            logger.warning(
                "pH %s inconsistent with pCO2 %s / HCO3 %s (calculated %s)",
                panel.ph, panel.pco2, panel.hco3, hh.calculated_ph,
            )

        # 4. Osmolality sanity
        low_calc_osm = (
            osmolar_gap is not None
            and osmolar_gap.calculated_osmolality < ABC.LOW_CALCULATED_OSMOLALITY
        )

        albumin_corrected = anion_gap is not None and anion_gap.correction_formula is not None

        return InterpretationWarnings(
            missing_optional_inputs=tuple(missing),
            henderson_hasselbalch=hh,
            low_calculated_osmolality=low_calc_osm,
            albumin_corrected=albumin_corrected,
        )
