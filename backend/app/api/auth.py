"""Authentication API: registration, login and profile management."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.database import get_db
from app.core.errors import Unauthorized, ValidationError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.user import User, default_preferences
from app.schemas.common import ApiResponse
from app.schemas.user import AuthResponse, LoginRequest, ProfileUpdate, RegisterRequest, UserProfile

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"


def _email_taken(db: Session, email: str, exclude_id: str = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    email = request.email.lower()
    if _email_taken(db, email):
        raise ValidationError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        name=request.name,
        email=email,
        hashed_password=get_password_hash(request.password),
        preferences=default_preferences(),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration won the unique constraint
        db.rollback()
        raise ValidationError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)
    logger.info(f"Registered user {user.id}")

    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(data={"sub": user.id}),
        user=UserProfile.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email.lower()).first()
    if not user or not verify_password(request.password, user.hashed_password):
        raise Unauthorized("Invalid credentials")

    return AuthResponse(
        message="Login successful",
        token=create_access_token(data={"sub": user.id}),
        user=UserProfile.model_validate(user),
    )


@router.post("/logout", response_model=ApiResponse[dict])
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards its copy."""
    logger.info(f"User {current_user.id} logged out")
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserProfile])
def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse(message="User profile retrieved", data=UserProfile.model_validate(current_user))


@router.put("/profile", response_model=ApiResponse[UserProfile])
def update_profile(
    request: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update name, email or preferences of the current user."""
    if request.email is not None:
        email = request.email.lower()
        if _email_taken(db, email, exclude_id=current_user.id):
            raise ValidationError("Email is already in use")
        current_user.email = email

    if request.name is not None:
        current_user.name = request.name.strip()

    if request.preferences is not None:
        current_user.preferences = request.preferences.model_dump()

    db.commit()
    db.refresh(current_user)
    return ApiResponse(message="Profile updated successfully", data=UserProfile.model_validate(current_user))
