import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import CamelModel

PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class NotificationPreferences(CamelModel):
    email: bool = True
    push: bool = False


class UserPreferences(CamelModel):
    notifications: NotificationPreferences = NotificationPreferences()
    dark_mode: bool = False
    language: str = "en"


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be between 2 and 50 characters")
        return v

    @field_validator("password")
    @classmethod
    def check_complexity(cls, v: str) -> str:
        if not PASSWORD_COMPLEXITY.match(v):
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase letter, and one number"
            )
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    preferences: Optional[UserPreferences] = None


class UserProfile(CamelModel):
    id: str
    name: str
    email: str
    role: str
    subscription: str
    preferences: UserPreferences
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user: UserProfile
