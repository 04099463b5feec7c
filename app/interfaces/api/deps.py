"""FastAPI dependency — bearer token extraction and verification."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.application.services.token_service import TokenService
from app.core.exceptions import UnauthorizedException
from app.domain.schemas.auth import TokenClaims
from app.interfaces.deps import get_token_service

security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Raw token from the ``Authorization: Bearer`` header."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Access token required")
    return credentials.credentials


def get_current_claims(
    token: str = Depends(get_bearer_token),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """Decoded claims; role freshness is checked by the services against the database."""
    return tokens.verify(token)
