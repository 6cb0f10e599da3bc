"""
Pytest configuration and fixtures for the CarBuyGuru API tests.
"""
import os
import random

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["PAYMENT_MIN_DELAY_SECONDS"] = "0"
os.environ["PAYMENT_MAX_DELAY_SECONDS"] = "0"

from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import (  # noqa: E402
    get_market_estimator,
    get_payment_processor,
    get_recommendation_engine,
)
from app.core.database import SessionLocal, create_tables, drop_tables  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.schemas.evaluation import MarketAnalysis  # noqa: E402
from app.services.market import deal_score, price_vs_market  # noqa: E402
from app.services.payments import MockPaymentProcessor  # noqa: E402
from app.services.recommendations import RecommendationEngine  # noqa: E402

VALID_VIN = "1HGCM82633A123456"
PASSWORD = "Secret123"


class StubMarketEstimator:
    """Deterministic estimator: fixed market value, no comparables."""

    def __init__(self, estimated_value: float = 20000):
        self.estimated_value = estimated_value

    def estimate(self, year, make, model, mileage, price) -> MarketAnalysis:
        delta = price_vs_market(price, self.estimated_value)
        return MarketAnalysis(
            estimated_value=self.estimated_value,
            price_vs_market=round(delta),
            deal_score=deal_score(delta),
            comparable=[],
        )


def car_payload(**overrides) -> dict:
    payload = {
        "year": 2020,
        "make": "Honda",
        "model": "Civic",
        "mileage": 30000,
        "price": 18000,
        "vin": VALID_VIN,
        "description": "One owner, garage kept",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str = "driver@example.com", name: str = "Test Driver") -> User:
        user = User(name=name, email=email, hashed_password=get_password_hash(PASSWORD))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def client():
    app.dependency_overrides[get_market_estimator] = lambda: StubMarketEstimator()
    app.dependency_overrides[get_recommendation_engine] = lambda: RecommendationEngine(random.Random(7))
    app.dependency_overrides[get_payment_processor] = lambda: MockPaymentProcessor(
        random.Random(0), success_rate=1.0, min_delay=0, max_delay=0
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str = "driver@example.com", name: str = "Test Driver") -> str:
    """Register an account and return its bearer token."""
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": PASSWORD},
    )
    assert response.status_code == 201, response.text
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def guest(session_id: str) -> dict:
    return {"x-session-id": session_id}


@pytest.fixture
def user_headers(client):
    return bearer(register(client))


@pytest.fixture
def other_user_headers(client):
    return bearer(register(client, email="other@example.com", name="Other Driver"))
