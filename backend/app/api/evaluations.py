"""Car evaluation API. Supports registered users and guest sessions."""
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.deps import (
    get_evaluation_store,
    get_market_estimator,
    get_principal,
    get_recommendation_engine,
)
from app.core.security import Principal, SESSION_HEADER
from app.schemas.common import ApiResponse, Pagination
from app.schemas.evaluation import (
    AnalysisResult,
    EvaluationCreate,
    EvaluationCreated,
    EvaluationResponse,
    EvaluationSummary,
    EvaluationUpdate,
    InspectionUpdate,
    PhotoCreate,
    RecommendationsResult,
)
from app.services.evaluation_store import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, EvaluationStore, page_count
from app.services.market import MarketEstimator
from app.services.recommendations import RecommendationEngine

router = APIRouter()


@router.post("", response_model=ApiResponse[EvaluationCreated], status_code=status.HTTP_201_CREATED)
def create_evaluation(
    body: EvaluationCreate,
    response: Response,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """Create a new car evaluation. Guests without a session get one minted."""
    evaluation = store.create(principal, body)
    if evaluation.session_id:
        response.headers[SESSION_HEADER] = evaluation.session_id
    return ApiResponse(
        message="Car evaluation created successfully",
        data=EvaluationCreated.model_validate(evaluation),
    )


@router.get("", response_model=ApiResponse[List[EvaluationSummary]])
def list_evaluations(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """List the caller's evaluations, newest first."""
    items, total = store.list(principal, page, limit)
    return ApiResponse(
        message="Evaluations retrieved successfully",
        data=[EvaluationSummary.model_validate(e) for e in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


@router.get("/{evaluation_id}", response_model=ApiResponse[EvaluationResponse])
def get_evaluation(
    evaluation_id: str,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    evaluation = store.get(principal, evaluation_id)
    return ApiResponse(
        message="Evaluation retrieved successfully",
        data=EvaluationResponse.model_validate(evaluation),
    )


@router.put("/{evaluation_id}", response_model=ApiResponse[EvaluationResponse])
def update_evaluation(
    evaluation_id: str,
    body: EvaluationUpdate,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """Apply a partial update to car details, Carfax preferences or status."""
    evaluation = store.update(principal, evaluation_id, body)
    return ApiResponse(
        message="Evaluation updated successfully",
        data=EvaluationResponse.model_validate(evaluation),
    )


@router.delete("/{evaluation_id}", response_model=ApiResponse[dict])
def delete_evaluation(
    evaluation_id: str,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    store.delete(principal, evaluation_id)
    return ApiResponse(message="Evaluation deleted successfully")


@router.post("/{evaluation_id}/analyze", response_model=ApiResponse[AnalysisResult])
def analyze_market(
    evaluation_id: str,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
    estimator: MarketEstimator = Depends(get_market_estimator),
):
    """Run market analysis for the evaluated car."""
    evaluation, analysis = store.analyze(principal, evaluation_id, estimator)
    return ApiResponse(
        message="Market analysis completed",
        data=AnalysisResult(evaluation=EvaluationSummary.model_validate(evaluation), market_analysis=analysis),
    )


@router.put("/{evaluation_id}/inspection", response_model=ApiResponse[EvaluationResponse])
def update_inspection(
    evaluation_id: str,
    body: InspectionUpdate,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """Record results for one inspection section and mark it completed."""
    evaluation = store.update_inspection(principal, evaluation_id, body.inspection_type, body.results)
    return ApiResponse(
        message="Inspection results updated",
        data=EvaluationResponse.model_validate(evaluation),
    )


@router.post("/{evaluation_id}/recommendations", response_model=ApiResponse[RecommendationsResult])
def generate_recommendations(
    evaluation_id: str,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """Generate offer recommendations from inspection and market data."""
    evaluation, recommendations = store.generate_recommendations(principal, evaluation_id, engine)
    return ApiResponse(
        message="Recommendations generated",
        data=RecommendationsResult(
            evaluation=EvaluationSummary.model_validate(evaluation),
            recommendations=recommendations,
        ),
    )


@router.post(
    "/{evaluation_id}/photos",
    response_model=ApiResponse[EvaluationResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_photo(
    evaluation_id: str,
    body: PhotoCreate,
    principal: Principal = Depends(get_principal),
    store: EvaluationStore = Depends(get_evaluation_store),
):
    """Attach photo metadata. The file itself is stored elsewhere."""
    evaluation = store.add_photo(principal, evaluation_id, body.filename, body.url)
    return ApiResponse(
        message="Photo added",
        data=EvaluationResponse.model_validate(evaluation),
    )
