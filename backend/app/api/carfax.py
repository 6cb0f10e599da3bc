"""Carfax vehicle history reports (mocked provider)."""
from fastapi import APIRouter, Depends

from app.api.deps import get_evaluation_store, get_principal, get_report_provider
from app.core.security import Principal
from app.schemas.common import ApiResponse
from app.schemas.services import CarfaxPricing, CarfaxReportResult, CarfaxRequest
from app.services.carfax import ReportProvider, download_url
from app.services.evaluation_store import EvaluationStore

router = APIRouter()


@router.get("/price", response_model=ApiResponse[CarfaxPricing])
def get_price(provider: ReportProvider = Depends(get_report_provider)):
    return ApiResponse(message="Carfax pricing retrieved", data=provider.pricing())


@router.post("/request", response_model=ApiResponse[CarfaxReportResult])
def request_report(
    body: CarfaxRequest,
    principal: Principal = Depends(get_principal),
    provider: ReportProvider = Depends(get_report_provider),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """Generate a report for a VIN, attaching it to an owned evaluation when one is named."""
    report = provider.request_report(body.vin)
    if body.evaluation_id:
        store.attach_carfax_report(principal, body.evaluation_id, report)

    return ApiResponse(
        message="Carfax report generated successfully",
        data=CarfaxReportResult(
            report_id=report.report_id,
            vin=report.vin,
            status=report.status,
            report=report,
            download_url=download_url(report.report_id),
            cost=provider.pricing().discounted_price,
            evaluation_id=body.evaluation_id,
        ),
    )
