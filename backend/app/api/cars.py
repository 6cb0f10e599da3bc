"""Car catalog API: search, specs and market pricing (mocked data)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_car_catalog
from app.core.errors import ValidationError
from app.schemas.common import ApiResponse
from app.schemas.evaluation import check_model_year
from app.schemas.services import CarInfo, CarSearchResults, MarketData
from app.services import car_catalog
from app.services.car_catalog import CarCatalog

router = APIRouter()


def _validated_year(year: int) -> int:
    try:
        return check_model_year(year)
    except ValueError as e:
        raise ValidationError(errors=[{"field": "year", "message": str(e)}])


@router.get("/search", response_model=ApiResponse[CarSearchResults])
def search_cars(q: Optional[str] = None, make: Optional[str] = None):
    """Search by free text, list one make's models, or list the whole catalog."""
    if q is not None and len(q.strip()) < car_catalog.MIN_QUERY_LENGTH:
        raise ValidationError(
            errors=[{"field": "q", "message": "Search query must be at least 2 characters"}]
        )
    results = car_catalog.search(q.strip() if q else None, make)
    return ApiResponse(
        message="Search completed",
        data=CarSearchResults(results=results, total=len(results)),
    )


@router.get("/info/{year}/{make}/{model}", response_model=ApiResponse[CarInfo])
def get_car_info(
    year: int,
    make: str,
    model: str,
    catalog: CarCatalog = Depends(get_car_catalog),
):
    info = catalog.car_info(_validated_year(year), make, model)
    return ApiResponse(message="Car information retrieved", data=info)


@router.get("/market-data", response_model=ApiResponse[MarketData])
def get_market_data(
    year: int = Query(...),
    make: str = Query(..., min_length=1),
    model: str = Query(..., min_length=1),
    mileage: int = Query(..., ge=0, le=1_000_000),
    catalog: CarCatalog = Depends(get_car_catalog),
):
    data = catalog.market_data(_validated_year(year), make, model, mileage)
    return ApiResponse(message="Market data retrieved", data=data)
