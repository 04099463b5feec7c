"""
API Dependencies.
"""

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.application.services.admin_service import AdminService
from app.application.services.auth_service import AuthService, admin_email_predicate
from app.application.services.notification_service import Notifier, build_notifier
from app.application.services.otp_registry import InMemoryOTPRegistry, OTPRegistry
from app.application.services.report_service import ReportService
from app.application.services.token_service import TokenService
from app.config import get_settings
from app.domain.models.report import Report
from app.domain.models.user import User
from app.domain.repositories.report_repository import ReportRepository
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.blob_store import BlobStore, LocalBlobStore
from app.infrastructure.database import get_db
from app.infrastructure.repositories.report_repository import SQLAlchemyReportRepository
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

settings = get_settings()


# Process-wide singletons. The registry must be shared between requests.

@lru_cache
def get_otp_registry() -> OTPRegistry:
    return InMemoryOTPRegistry(ttl=timedelta(minutes=settings.OTP_TTL_MINUTES))


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    )


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier(settings)


@lru_cache
def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings)


# Per-request

def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db, User)


def get_report_repository(db: Session = Depends(get_db)) -> ReportRepository:
    """Get report repository instance."""
    return SQLAlchemyReportRepository(db, Report)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    registry: OTPRegistry = Depends(get_otp_registry),
    tokens: TokenService = Depends(get_token_service),
    notifier: Notifier = Depends(get_notifier),
) -> AuthService:
    return AuthService(
        users=users,
        registry=registry,
        tokens=tokens,
        notifier=notifier,
        is_admin_identity=admin_email_predicate(settings.ADMIN_EMAILS),
    )


def get_report_service(
    reports: ReportRepository = Depends(get_report_repository),
    users: UserRepository = Depends(get_user_repository),
    notifier: Notifier = Depends(get_notifier),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ReportService:
    return ReportService(reports=reports, users=users, notifier=notifier, blob_store=blob_store)


def get_admin_service(
    users: UserRepository = Depends(get_user_repository),
    reports: ReportRepository = Depends(get_report_repository),
) -> AdminService:
    return AdminService(users=users, reports=reports)
