"""Pydantic schemas for User and Auth."""

from pydantic import BaseModel, EmailStr, Field, StringConstraints
from datetime import datetime
from typing import Annotated, Optional

from app.domain.schemas.base import CamelModel

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    first_name: Name
    last_name: Name


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    otp: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=12)]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserRead(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    created_at: Optional[datetime] = None


class TokenClaims(BaseModel):
    user_id: str
    email: str
    role: str


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    user: UserRead


class MessageResponse(BaseModel):
    message: str
