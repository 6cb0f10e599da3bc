import uuid

from sqlalchemy import Column, String, DateTime, JSON

from app.core.database import Base, utcnow


def default_preferences() -> dict:
    return {
        "notifications": {"email": True, "push": False},
        "dark_mode": False,
        "language": "en",
    }


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user", index=True)  # user, admin
    subscription = Column(String(20), nullable=False, default="free")  # free, premium
    preferences = Column(JSON, nullable=False, default=default_preferences)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
