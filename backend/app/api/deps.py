"""
API dependencies: identity resolution, stores and mocked collaborators.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import Unauthorized
from app.core.security import (
    GuestPrincipal,
    Principal,
    UserPrincipal,
    decode_access_token,
    SESSION_ID_MAX_LENGTH,
    security,
)
from app.models.user import User
from app.services.car_catalog import CarCatalog
from app.services.carfax import MockCarfaxProvider, ReportProvider
from app.services.evaluation_store import EvaluationStore
from app.services.market import MarketEstimator, RandomMarketEstimator
from app.services.payments import MockPaymentProcessor, PaymentProcessor
from app.services.recommendations import RecommendationEngine

logger = logging.getLogger(__name__)


def _user_from_token(token: str, db: Session) -> Optional[User]:
    payload = decode_access_token(token)
    if payload is None:
        return None
    return db.query(User).filter(User.id == payload["sub"]).first()


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_session_id: Optional[str] = Header(None, max_length=SESSION_ID_MAX_LENGTH),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the caller for optional-auth routes.

    A bearer token that fails verification does not fall back to the session
    header: the caller is treated as a guest without a session.
    """
    if credentials is not None:
        user = _user_from_token(credentials.credentials, db)
        if user is None:
            logger.info("Invalid token in optional auth, continuing as guest")
            return GuestPrincipal(session_id=None)
        return UserPrincipal(user_id=user.id, email=user.email, role=user.role)

    session_id = (x_session_id or "").strip() or None
    return GuestPrincipal(session_id=session_id)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Require a valid bearer token naming an existing user."""
    if credentials is None:
        raise Unauthorized()
    user = _user_from_token(credentials.credentials, db)
    if user is None:
        raise Unauthorized()
    return user


def get_evaluation_store(db: Session = Depends(get_db)) -> EvaluationStore:
    return EvaluationStore(db)


def get_market_estimator() -> MarketEstimator:
    return RandomMarketEstimator()


def get_recommendation_engine() -> RecommendationEngine:
    return RecommendationEngine()


def get_report_provider() -> ReportProvider:
    return MockCarfaxProvider()


def get_payment_processor() -> PaymentProcessor:
    return MockPaymentProcessor()


def get_car_catalog() -> CarCatalog:
    return CarCatalog()
