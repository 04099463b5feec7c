"""Admin API routes — users overview and platform statistics."""

from typing import List

from fastapi import APIRouter, Depends

from app.application.services.admin_service import AdminService
from app.domain.schemas.admin import PlatformStats, UserWithReportCount
from app.domain.schemas.auth import TokenClaims
from app.interfaces.api.deps import get_current_claims
from app.interfaces.deps import get_admin_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserWithReportCount])
def list_users(
    claims: TokenClaims = Depends(get_current_claims),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_users(claims)


@router.get("/stats", response_model=PlatformStats)
def platform_stats(
    claims: TokenClaims = Depends(get_current_claims),
    service: AdminService = Depends(get_admin_service),
):
    return service.stats(claims)
