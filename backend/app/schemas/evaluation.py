import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field, field_validator

from app.schemas.common import CamelModel

MIN_MODEL_YEAR = 1990
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")


def max_model_year() -> int:
    """Newest accepted model year; moves with the calendar."""
    return datetime.now().year + 1


def check_model_year(value: int) -> int:
    upper = max_model_year()
    if value < MIN_MODEL_YEAR or value > upper:
        raise ValueError(f"Year must be between {MIN_MODEL_YEAR} and {upper}")
    return value


def normalize_vin(value: Optional[str]) -> Optional[str]:
    """Upper-case and check a VIN. Empty values mean no VIN."""
    if value is None:
        return None
    vin = value.strip().upper()
    if not vin:
        return None
    if len(vin) != 17:
        raise ValueError("VIN must be exactly 17 characters")
    if not VIN_PATTERN.match(vin):
        raise ValueError("VIN contains invalid characters")
    return vin


class EvaluationStatus(str, Enum):
    DRAFT = "draft"
    ANALYZING = "analyzing"
    IN_PROGRESS = "in_progress"
    AWAITING_CARFAX = "awaiting_carfax"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class InspectionType(str, Enum):
    GENERAL = "general"
    MECHANICAL = "mechanical"
    PAPERWORK = "paperwork"


# Car details

class CarDetails(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    year: int
    make: str = Field(min_length=1, max_length=50)
    model: str = Field(min_length=1, max_length=50)
    mileage: int = Field(ge=0, le=1_000_000)
    price: float = Field(ge=0, le=1_000_000)
    vin: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        return check_model_year(v)

    @field_validator("vin")
    @classmethod
    def validate_vin(cls, v: Optional[str]) -> Optional[str]:
        return normalize_vin(v)


class EvaluationCreate(CarDetails):
    pass


class CarDetailsUpdate(CamelModel):
    """Partial car details; the merged result is re-validated as CarDetails."""
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    mileage: Optional[int] = None
    price: Optional[float] = None
    vin: Optional[str] = None
    description: Optional[str] = None


class CarDetailsResponse(CamelModel):
    year: int
    make: str
    model: str
    mileage: int
    price: float
    vin: Optional[str] = None
    description: Optional[str] = None


# Photos

class Photo(CamelModel):
    id: str
    filename: str
    url: str
    uploaded_at: datetime


class PhotoCreate(CamelModel):
    filename: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2048)


# Carfax

class CarfaxSection(CamelModel):
    requested: bool = False
    purchased: bool = False
    want_carfax: bool = False
    price: float = 0
    vin: str = ""
    report_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class CarfaxUpdate(CamelModel):
    requested: Optional[bool] = None
    purchased: Optional[bool] = None
    want_carfax: Optional[bool] = None
    price: Optional[float] = Field(None, ge=0)
    vin: Optional[str] = None

    @field_validator("vin")
    @classmethod
    def validate_vin(cls, v: Optional[str]) -> Optional[str]:
        return normalize_vin(v)


# Market analysis

class ComparableListing(CamelModel):
    source: str
    price: float
    mileage: int
    location: str


class MarketAnalysis(CamelModel):
    estimated_value: float
    price_vs_market: float
    deal_score: int = Field(ge=0, le=100)
    comparable: List[ComparableListing] = []


# Inspection

class InspectionCheck(CamelModel):
    category: str
    item: str
    status: Literal["pass", "fail", "warning"]
    notes: Optional[str] = None


class GeneralInspection(CamelModel):
    completed: bool = False
    notes: Optional[str] = None
    issues: List[str] = []


class MechanicalInspection(CamelModel):
    completed: bool = False
    results: List[InspectionCheck] = []


class PaperworkInspection(CamelModel):
    completed: bool = False
    vin_match: Optional[Literal["pass", "fail"]] = None
    title_status: Optional[str] = None
    ownership_verified: Optional[Literal["pass", "fail"]] = None
    liens: List[str] = []


class Inspection(CamelModel):
    general: GeneralInspection = Field(default_factory=GeneralInspection)
    mechanical: MechanicalInspection = Field(default_factory=MechanicalInspection)
    paperwork: PaperworkInspection = Field(default_factory=PaperworkInspection)


class GeneralInspectionResults(CamelModel):
    notes: Optional[str] = Field(None, max_length=2000)
    issues: Optional[List[str]] = None


class MechanicalInspectionResults(CamelModel):
    results: Optional[List[InspectionCheck]] = None


class PaperworkInspectionResults(CamelModel):
    vin_match: Optional[Literal["pass", "fail"]] = None
    title_status: Optional[str] = None
    ownership_verified: Optional[Literal["pass", "fail"]] = None
    liens: Optional[List[str]] = None


INSPECTION_RESULT_MODELS = {
    InspectionType.GENERAL: GeneralInspectionResults,
    InspectionType.MECHANICAL: MechanicalInspectionResults,
    InspectionType.PAPERWORK: PaperworkInspectionResults,
}


class InspectionUpdate(CamelModel):
    inspection_type: InspectionType
    results: Dict[str, Any] = {}


# Recommendations

class RepairCost(CamelModel):
    issue: str
    estimated_cost: float
    priority: Literal["low", "medium", "high"]


class Recommendations(CamelModel):
    suggested_offer: float
    max_offer: float
    walk_away_price: float
    repair_costs: List[RepairCost] = []
    negotiation_points: List[str] = []


# Requests / responses

class EvaluationUpdate(CamelModel):
    """Allow-listed patch. Identity, ownership, timestamps and progress are not patchable."""
    car_details: Optional[CarDetailsUpdate] = None
    carfax: Optional[CarfaxUpdate] = None
    status: Optional[EvaluationStatus] = None


class EvaluationSummary(CamelModel):
    id: str
    display_name: str
    price: float
    mileage: int
    status: EvaluationStatus
    progress: int
    deal_score: Optional[int] = None
    estimated_value: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class EvaluationCreated(EvaluationSummary):
    session_id: Optional[str] = None


class EvaluationResponse(CamelModel):
    id: str
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    display_name: str
    car_details: CarDetailsResponse
    photos: List[Photo] = []
    carfax: CarfaxSection
    market_analysis: Optional[MarketAnalysis] = None
    inspection: Inspection
    recommendations: Optional[Recommendations] = None
    status: EvaluationStatus
    progress: int
    created_at: datetime
    updated_at: datetime


class AnalysisResult(CamelModel):
    evaluation: EvaluationSummary
    market_analysis: MarketAnalysis


class RecommendationsResult(CamelModel):
    evaluation: EvaluationSummary
    recommendations: Recommendations
