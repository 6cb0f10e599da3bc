"""Wire models for the mocked third-party surfaces: Carfax, payments, car catalog."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel
from app.schemas.evaluation import normalize_vin


# Carfax

class CarfaxPricing(CamelModel):
    regular_price: float
    discounted_price: float
    discount: int
    discount_reason: str
    currency: str = "USD"
    valid_until: datetime


class CarfaxRequest(CamelModel):
    vin: str
    evaluation_id: Optional[str] = None

    @field_validator("vin")
    @classmethod
    def validate_vin(cls, v: str) -> str:
        vin = normalize_vin(v)
        if vin is None:
            raise ValueError("VIN is required")
        return vin


class CarfaxSummary(CamelModel):
    overall_rating: str
    key_findings: List[str] = []
    red_flags: List[str] = []
    recommendations: List[str] = []


class CarfaxReport(CamelModel):
    report_id: str
    vin: str
    requested_at: datetime
    status: str
    data: Dict[str, Any]
    summary: CarfaxSummary


class CarfaxReportResult(CamelModel):
    report_id: str
    vin: str
    status: str
    report: CarfaxReport
    download_url: str
    cost: float
    evaluation_id: Optional[str] = None


# Payments

class PaymentMethod(CamelModel):
    id: str
    name: str
    type: str
    icon: str
    description: str
    enabled: bool = True
    processing_fee: float = 0
    popular: bool = False


class PaymentRequest(CamelModel):
    amount: float = Field(gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    payment_method: str = Field(min_length=1)
    service_type: str = Field(min_length=1)
    evaluation_id: Optional[str] = None
    payment_details: Optional[Dict[str, Any]] = None


class Receipt(CamelModel):
    receipt_id: str
    receipt_url: str
    download_url: str


class PaymentResult(CamelModel):
    transaction_id: str
    status: str
    amount: float
    currency: str
    payment_method: str
    service_type: str
    description: str
    processed_at: datetime
    fee: float = 0
    evaluation_id: Optional[str] = None
    receipt: Receipt


# Car catalog

class CarSearchResults(CamelModel):
    results: List[Dict[str, Any]]
    total: int


class FuelEconomy(CamelModel):
    city: int
    highway: int


class CarInfo(CamelModel):
    year: int
    make: str
    model: str
    body_style: str
    engine: str
    transmission: str
    fuel_economy: FuelEconomy
    common_issues: List[str]
    recalls: int
    reliability: str
    depreciation: int


class PriceRange(CamelModel):
    low: int
    high: int


class MarketComparable(CamelModel):
    source: str
    count: int
    avg_price: int
    avg_mileage: int


class MarketData(CamelModel):
    estimated_value: int
    price_range: PriceRange
    dealer_average: int
    private_seller_average: int
    trade_in_value: int
    data_source: str
    last_updated: datetime
    comparable: List[MarketComparable]
    market_trend: str
    demand_level: str
