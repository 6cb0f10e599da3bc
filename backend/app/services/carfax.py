"""Carfax integration interface and its mock implementation.

In production this would call the Carfax API; ``MockCarfaxProvider`` fabricates
a plausible vehicle history report.
"""
import logging
import random
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from app.core.config import settings
from app.schemas.services import CarfaxPricing, CarfaxReport, CarfaxSummary

logger = logging.getLogger(__name__)

PARTNER_DISCOUNT_REASON = "CarBuyGuru Partner Discount"
PRICING_VALID_DAYS = 7


class ReportProvider(Protocol):
    def pricing(self) -> CarfaxPricing:
        ...

    def request_report(self, vin: str) -> CarfaxReport:
        ...


def summarize(data: dict) -> CarfaxSummary:
    """Derive findings, red flags and advice from report data."""
    summary = CarfaxSummary(overall_rating="Good")

    if data["accidentHistory"]["reportedAccidents"] > 0:
        summary.key_findings.append("Accident history reported")
        summary.red_flags.append("Previous accident damage")

    if data["ownershipHistory"]["numberOfOwners"] > 2:
        summary.key_findings.append("Multiple previous owners")

    if data["titleInfo"]["issues"]:
        summary.red_flags.append("Title issues present")
        summary.recommendations.append("Consider impact on resale value")

    if not summary.red_flags:
        summary.recommendations.append("Clean history - good purchase candidate")

    return summary


class MockCarfaxProvider:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def pricing(self) -> CarfaxPricing:
        regular = settings.CARFAX_REGULAR_PRICE
        discounted = settings.CARFAX_DISCOUNTED_PRICE
        return CarfaxPricing(
            regular_price=regular,
            discounted_price=discounted,
            discount=round((regular - discounted) / regular * 100),
            discount_reason=PARTNER_DISCOUNT_REASON,
            valid_until=datetime.now(timezone.utc) + timedelta(days=PRICING_VALID_DAYS),
        )

    def _history(self) -> dict:
        rng = self.rng
        now = datetime.now(timezone.utc)
        return {
            "titleInfo": {"status": "Clean", "issues": []},
            "ownershipHistory": {
                "numberOfOwners": rng.randint(1, 3),
                "ownershipType": "Personal" if rng.random() > 0.7 else "Fleet/Commercial",
                "registrationStates": "Single State" if rng.random() > 0.5 else "Multiple States",
            },
            "accidentHistory": {
                "reportedAccidents": rng.randint(0, 1),
                "damageReported": rng.random() > 0.7,
                "airbagDeployment": rng.random() > 0.9,
            },
            "serviceHistory": {
                "serviceRecords": rng.randint(5, 19),
                "lastServiceDate": (now - timedelta(days=rng.random() * 365)).isoformat(),
                "maintenanceType": "Regular" if rng.random() > 0.5 else "Irregular",
            },
            "recalls": {
                "totalRecalls": rng.randint(0, 2),
                "openRecalls": rng.randint(0, 1),
                "recallsResolved": True,
            },
            "mileageHistory": {
                "consistent": rng.random() > 0.2,
                "averageMilesPerYear": rng.randint(10000, 14999),
                "rollbackIndicator": rng.random() > 0.95,
            },
        }

    def request_report(self, vin: str) -> CarfaxReport:
        data = self._history()
        report = CarfaxReport(
            report_id=secrets.token_hex(8),
            vin=vin.upper(),
            requested_at=datetime.now(timezone.utc),
            status="completed",
            data=data,
            summary=summarize(data),
        )
        logger.info(f"Generated Carfax report {report.report_id} for VIN {report.vin}")
        return report


def download_url(report_id: str) -> str:
    return f"{settings.PUBLIC_BASE_URL}/carfax/download/{report_id}"
