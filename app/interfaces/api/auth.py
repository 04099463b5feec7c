"""Auth API routes — signup, verify-otp, login, me, logout, refresh."""

from fastapi import APIRouter, Depends, status

from app.application.services.auth_service import AuthService
from app.domain.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    TokenResponse,
    UserRead,
    VerifyOTPRequest,
)
from app.interfaces.api.deps import get_bearer_token
from app.interfaces.deps import get_auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/signup", response_model=MessageResponse)
def signup(body: SignupRequest, service: AuthService = Depends(get_auth_service)):
    """Step 1: park the signup and email a one-time code."""
    return service.signup(body)


@router.post("/verify-otp", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def verify_otp(body: VerifyOTPRequest, service: AuthService = Depends(get_auth_service)):
    """Step 2: create the account from the pending signup and log the user in."""
    return service.verify_signup(body)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return service.login(body)


@router.get("/me", response_model=UserRead)
def get_me(token: str = Depends(get_bearer_token), service: AuthService = Depends(get_auth_service)):
    return service.get_current_user(token)


@router.post("/logout", response_model=MessageResponse)
def logout(token: str = Depends(get_bearer_token), service: AuthService = Depends(get_auth_service)):
    return service.logout(token)


@router.post("/refresh", response_model=TokenResponse)
def refresh(token: str = Depends(get_bearer_token), service: AuthService = Depends(get_auth_service)):
    return service.refresh_token(token)
