from app.schemas.common import ApiResponse, Pagination
from app.schemas.evaluation import (
    EvaluationCreate, EvaluationUpdate, EvaluationSummary, EvaluationCreated,
    EvaluationResponse, InspectionUpdate, PhotoCreate, AnalysisResult, RecommendationsResult,
)
from app.schemas.user import RegisterRequest, LoginRequest, ProfileUpdate, UserProfile, AuthResponse

__all__ = [
    "ApiResponse", "Pagination",
    "EvaluationCreate", "EvaluationUpdate", "EvaluationSummary", "EvaluationCreated",
    "EvaluationResponse", "InspectionUpdate", "PhotoCreate", "AnalysisResult", "RecommendationsResult",
    "RegisterRequest", "LoginRequest", "ProfileUpdate", "UserProfile", "AuthResponse",
]
