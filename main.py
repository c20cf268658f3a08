# main.py

import logging
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

# Import Data Models & Logic
from models import PrimaryDisorder, AnionGapStatus, Chronicity
from constants import VERSION
from core_acid_base import AcidBaseEngine
from compensation import CompensationAnalyzer
from causes import CauseLookup
from interpreter import generate_interpretation, INSUFFICIENT_DATA_MESSAGE

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("abg-interpreter-api")

app = FastAPI(
    title="ABG Interpreter API",
    version=VERSION,
    description="Stepwise arterial blood gas interpretation: acid-base classification, "
                "anion/osmolar gaps, compensation and delta ratio. \n\n"
                "**WARNING**: Decision Support Tool Only. Not for autonomous clinical use.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected request to {request.url.path}: {len(exc.errors())} validation error(s)")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input data", "details": jsonable_encoder(exc.errors())},
    )


@app.get("/")
def read_root():
    return {"status": "active", "message": "ABG Interpreter API is running successfully!"}


@app.get("/health")
def health_check():
    """K8s/AWS Health Probe"""
    return {"status": "active", "version": VERSION, "module": "abg-interpretation-engine"}


# --- 2. STRICT INPUT SCHEMA (The Guardrails) ---
class BloodGasRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "pH": 7.10, "pCO2": 60, "HCO3": 18,
                "Na": 140, "Cl": 100, "albumin": 4.0,
            }
        },
    )

    # Blood gas (required for interpretation, but checked by the engine)
    ph: Optional[float] = Field(None, alias="pH", ge=6.8, le=7.8)
    pco2: Optional[float] = Field(None, alias="pCO2", ge=10, le=100, description="mmHg")
    hco3: Optional[float] = Field(None, alias="HCO3", ge=5, le=45, description="mmol/L")

    # Electrolytes
    na: Optional[float] = Field(None, alias="Na", ge=100, le=180)
    cl: Optional[float] = Field(None, alias="Cl", ge=70, le=130)
    albumin: Optional[float] = Field(None, ge=1, le=6, description="g/dL")
    potassium: Optional[float] = Field(None, ge=0, le=10)

    # Osmolar gap (mmol/L)
    measured_osmolality: Optional[float] = Field(None, alias="measuredOsmolality", ge=200, le=400)
    glucose: Optional[float] = Field(None, ge=0, le=50)
    urea: Optional[float] = Field(None, ge=0, le=100)
    ethanol: Optional[float] = Field(None, ge=0, le=100)

    # Toxic alcohol screening
    has_ketones: Optional[bool] = Field(None, alias="hasKetones")
    has_vision_changes: Optional[bool] = Field(None, alias="hasVisionChanges")
    has_calcium_oxalate: Optional[bool] = Field(None, alias="hasCalciumOxalate")


class AnionGapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    na: float = Field(..., alias="Na")
    cl: float = Field(..., alias="Cl")
    hco3: float = Field(..., alias="HCO3")
    albumin: Optional[float] = None


class OsmolarGapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    measured_osmolality: float = Field(..., alias="measuredOsmolality")
    na: float = Field(..., alias="Na")
    glucose: float
    urea: float
    ethanol: Optional[float] = None


class WintersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hco3: float = Field(..., alias="HCO3")
    pco2: float = Field(..., alias="pCO2")


class DeltaRatioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    anion_gap: float = Field(..., alias="anionGap")
    hco3: float = Field(..., alias="HCO3")


# --- 3. EXPLICIT RESPONSE SCHEMA (The Contract) ---
class CausesResponse(BaseModel):
    causes: List[str]
    mnemonic: Optional[str] = None


# --- 4. ENDPOINTS ---

@app.post("/api/interpret")
def interpret(request: BloodGasRequest):
    """
    Interprets a full blood gas panel: primary disorder, gaps,
    compensation, concurrent disorders and candidate causes.
    """
    try:
        outcome = generate_interpretation(request.model_dump(exclude_none=True))
    except Exception as e:
        logger.error(f"Internal Engine Failure: {str(e)}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to interpret blood gas values"})

    if not outcome.success:
        logger.info(f"Interpretation refused: {outcome.errors}")
        return JSONResponse(status_code=400, content={"error": outcome.errors[0] if outcome.errors else INSUFFICIENT_DATA_MESSAGE})

    interpretation = outcome.interpretation
    logger.info(
        f"Interpreted pH {request.ph}, pCO2 {request.pco2}, HCO3 {request.hco3} -> "
        f"{interpretation.primary_disorder.value}"
    )
    return interpretation.to_dict()


@app.post("/api/calculate/anion-gap")
def anion_gap(request: AnionGapRequest):
    return AcidBaseEngine.calculate_anion_gap(request.na, request.cl, request.hco3, request.albumin).to_dict()


@app.post("/api/calculate/osmolar-gap")
def osmolar_gap(request: OsmolarGapRequest):
    return AcidBaseEngine.calculate_osmolar_gap(
        request.measured_osmolality, request.na, request.glucose, request.urea, request.ethanol
    ).to_dict()


@app.post("/api/calculate/winters")
def winters(request: WintersRequest):
    return CompensationAnalyzer.winters_formula(request.hco3, request.pco2).to_dict()


@app.post("/api/calculate/delta-ratio")
def delta_ratio(request: DeltaRatioRequest):
    return AcidBaseEngine.calculate_delta_ratio(request.anion_gap, request.hco3).to_dict()


@app.get("/api/causes/{disorder}", response_model=CausesResponse)
def causes(
    disorder: str,
    anion_gap_status: Optional[AnionGapStatus] = Query(None, alias="anionGapStatus"),
    chronicity: Optional[Chronicity] = Query(None),
):
    try:
        primary = PrimaryDisorder(disorder)
    except ValueError:
        primary = None
    if primary is None or primary == PrimaryDisorder.NORMAL:
        return JSONResponse(status_code=400, content={"error": "Invalid disorder type"})

    return CausesResponse(
        causes=list(CauseLookup.get_causes(primary, anion_gap_status, chronicity)),
        mnemonic=CauseLookup.get_mnemonic(primary, anion_gap_status),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
