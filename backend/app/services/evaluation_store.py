"""Principal-scoped persistence for car evaluations.

Every operation resolves the record through the ownership guard, validates its
input before touching the row, recomputes progress and bumps ``updated_at``.
Database failures roll the session back so a record is never half-updated.
"""
import logging
import math
import uuid
from typing import List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.errors import validation_error_from_pydantic
from app.core.security import GuestPrincipal, Principal, UserPrincipal, mint_session_id
from app.models.evaluation import CarEvaluation, default_carfax, default_inspection
from app.schemas.evaluation import (
    CarDetails,
    EvaluationUpdate,
    INSPECTION_RESULT_MODELS,
    InspectionType,
    MarketAnalysis,
    Photo,
    Recommendations,
)
from app.schemas.services import CarfaxReport
from app.services.market import MarketEstimator
from app.services.ownership import ensure_owner
from app.services.progress import calculate_progress
from app.services.recommendations import RecommendationEngine
from app.services.workflow import Operation, apply_transition

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class EvaluationStore:
    def __init__(self, db: Session):
        self.db = db

    # Internals

    def _touch(self, evaluation: CarEvaluation) -> None:
        evaluation.progress = calculate_progress(evaluation)
        evaluation.updated_at = utcnow()

    def _commit(self, evaluation: Optional[CarEvaluation] = None) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist evaluation: {e}")
            self.db.rollback()
            raise
        if evaluation is not None:
            self.db.refresh(evaluation)

    def _load(self, principal: Principal, evaluation_id: str, reveal_forbidden: bool = False) -> CarEvaluation:
        evaluation = self.db.query(CarEvaluation).filter(CarEvaluation.id == evaluation_id).first()
        ensure_owner(principal, evaluation, reveal_forbidden=reveal_forbidden)
        return evaluation

    # CRUD

    def create(self, principal: Principal, details: CarDetails) -> CarEvaluation:
        if isinstance(principal, UserPrincipal):
            user_id, session_id = principal.user_id, None
        else:
            user_id, session_id = None, principal.session_id or mint_session_id()

        now = utcnow()
        evaluation = CarEvaluation(
            user_id=user_id,
            session_id=session_id,
            **details.model_dump(),
            photos=[],
            carfax=default_carfax(details.vin),
            inspection=default_inspection(),
            market_analysis=None,
            recommendations=None,
            created_at=now,
            updated_at=now,
        )
        apply_transition(evaluation, Operation.CREATE)
        evaluation.progress = calculate_progress(evaluation)

        self.db.add(evaluation)
        self._commit(evaluation)
        logger.info(f"Created evaluation {evaluation.id} ({evaluation.display_name}) for {principal}")
        return evaluation

    def list(
        self, principal: Principal, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[CarEvaluation], int]:
        query = self.db.query(CarEvaluation)
        if isinstance(principal, UserPrincipal):
            query = query.filter(CarEvaluation.user_id == principal.user_id)
        elif isinstance(principal, GuestPrincipal) and principal.session_id:
            query = query.filter(
                CarEvaluation.session_id == principal.session_id,
                CarEvaluation.user_id.is_(None),
            )
        else:
            return [], 0

        total = query.count()
        items = (
            query.order_by(CarEvaluation.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def get(self, principal: Principal, evaluation_id: str) -> CarEvaluation:
        return self._load(principal, evaluation_id)

    def update(self, principal: Principal, evaluation_id: str, patch: EvaluationUpdate) -> CarEvaluation:
        evaluation = self._load(principal, evaluation_id)

        details = None
        if patch.car_details is not None:
            merged = {**evaluation.car_details, **patch.car_details.model_dump(exclude_unset=True)}
            try:
                details = CarDetails.model_validate(merged)
            except PydanticValidationError as e:
                raise validation_error_from_pydantic(e, prefix="carDetails")

        carfax = None
        if patch.carfax is not None:
            changes = patch.carfax.model_dump(exclude_unset=True)
            if "vin" in changes and changes["vin"] is None:
                changes["vin"] = ""
            carfax = {**(evaluation.carfax or default_carfax()), **changes}

        # Everything validated; apply
        if details is not None:
            for key, value in details.model_dump().items():
                setattr(evaluation, key, value)
        if carfax is not None:
            evaluation.carfax = carfax
        if patch.status is not None:
            evaluation.status = patch.status.value

        self._touch(evaluation)
        self._commit(evaluation)
        logger.info(f"Updated evaluation {evaluation.id}")
        return evaluation

    def delete(self, principal: Principal, evaluation_id: str) -> None:
        evaluation = self._load(principal, evaluation_id)
        self.db.delete(evaluation)
        self._commit()
        logger.info(f"Deleted evaluation {evaluation_id}")

    # Workflow

    def analyze(
        self, principal: Principal, evaluation_id: str, estimator: MarketEstimator
    ) -> Tuple[CarEvaluation, MarketAnalysis]:
        evaluation = self._load(principal, evaluation_id, reveal_forbidden=True)
        analysis = estimator.estimate(
            evaluation.year, evaluation.make, evaluation.model, evaluation.mileage, evaluation.price
        )

        evaluation.market_analysis = analysis.model_dump(mode="json")
        apply_transition(evaluation, Operation.ANALYZE)
        self._touch(evaluation)
        self._commit(evaluation)
        return evaluation, analysis

    def update_inspection(
        self, principal: Principal, evaluation_id: str, inspection_type: InspectionType, results: dict
    ) -> CarEvaluation:
        evaluation = self._load(principal, evaluation_id, reveal_forbidden=True)

        result_model = INSPECTION_RESULT_MODELS[inspection_type]
        try:
            parsed = result_model.model_validate(results or {})
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e, prefix="results")

        changes = parsed.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        inspection = {**(evaluation.inspection or default_inspection())}
        inspection[inspection_type.value] = {
            **inspection.get(inspection_type.value, {}),
            **changes,
            "completed": True,
        }

        evaluation.inspection = inspection
        apply_transition(evaluation, Operation.INSPECT)
        self._touch(evaluation)
        self._commit(evaluation)
        logger.info(f"Recorded {inspection_type.value} inspection for evaluation {evaluation.id}")
        return evaluation

    def generate_recommendations(
        self, principal: Principal, evaluation_id: str, engine: RecommendationEngine
    ) -> Tuple[CarEvaluation, Recommendations]:
        evaluation = self._load(principal, evaluation_id, reveal_forbidden=True)
        recommendations = engine.generate(evaluation)

        evaluation.recommendations = recommendations.model_dump(mode="json")
        apply_transition(evaluation, Operation.RECOMMEND)
        self._touch(evaluation)
        self._commit(evaluation)
        return evaluation, recommendations

    def add_photo(self, principal: Principal, evaluation_id: str, filename: str, url: str) -> CarEvaluation:
        evaluation = self._load(principal, evaluation_id, reveal_forbidden=True)
        photo = Photo(id=uuid.uuid4().hex, filename=filename, url=url, uploaded_at=utcnow())

        evaluation.photos = [*(evaluation.photos or []), photo.model_dump(mode="json")]
        self._touch(evaluation)
        self._commit(evaluation)
        return evaluation

    def attach_carfax_report(self, principal: Principal, evaluation_id: str, report: CarfaxReport) -> CarEvaluation:
        evaluation = self._load(principal, evaluation_id, reveal_forbidden=True)

        evaluation.carfax = {
            **(evaluation.carfax or default_carfax()),
            "requested": True,
            "vin": report.vin,
            "report_id": report.report_id,
            "data": {**report.data, "summary": report.summary.model_dump(by_alias=True)},
        }
        self._touch(evaluation)
        self._commit(evaluation)
        logger.info(f"Attached Carfax report {report.report_id} to evaluation {evaluation.id}")
        return evaluation
