import uuid

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON, Index

from app.core.database import Base, utcnow
from app.core.security import SESSION_ID_MAX_LENGTH


def default_inspection() -> dict:
    return {
        "general": {"completed": False, "notes": None, "issues": []},
        "mechanical": {"completed": False, "results": []},
        "paperwork": {
            "completed": False,
            "vin_match": None,
            "title_status": None,
            "ownership_verified": None,
            "liens": [],
        },
    }


def default_carfax(vin: str = None) -> dict:
    return {
        "requested": False,
        "purchased": False,
        "want_carfax": False,
        "price": 0,
        "vin": vin or "",
        "report_id": None,
        "data": None,
    }


class CarEvaluation(Base):
    __tablename__ = "car_evaluations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Ownership: user_id for registered users, session_id for guests
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    session_id = Column(String(SESSION_ID_MAX_LENGTH), nullable=True, index=True)

    # Car details
    year = Column(Integer, nullable=False)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    mileage = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    vin = Column(String(17), index=True)
    description = Column(Text)

    # Sections filled in incrementally (JSON documents, snake_case keys)
    photos = Column(JSON, nullable=False, default=list)
    carfax = Column(JSON, nullable=False, default=default_carfax)
    market_analysis = Column(JSON)
    inspection = Column(JSON, nullable=False, default=default_inspection)
    recommendations = Column(JSON)

    # draft, analyzing, in_progress, awaiting_carfax, completed, archived
    status = Column(String(20), nullable=False, default="draft", index=True)
    progress = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_car_evaluations_user_created", "user_id", "created_at"),
        Index("ix_car_evaluations_make_model", "make", "model"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.year} {self.make} {self.model}"

    @property
    def car_details(self) -> dict:
        return {
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "mileage": self.mileage,
            "price": self.price,
            "vin": self.vin,
            "description": self.description,
        }

    @property
    def deal_score(self):
        return (self.market_analysis or {}).get("deal_score")

    @property
    def estimated_value(self):
        return (self.market_analysis or {}).get("estimated_value")

    def __repr__(self):
        return f"<CarEvaluation {self.id} {self.display_name} status={self.status}>"
