"""Pydantic schemas for the admin overview."""

from app.domain.schemas.auth import UserRead
from app.domain.schemas.base import CamelModel


class UserWithReportCount(UserRead):
    total_reports: int = 0
    red_flag_reports: int = 0
    intervention_reports: int = 0


class PlatformStats(CamelModel):
    total_users: int
    total_admins: int
    total_reports: int
    reports_by_status: dict[str, int]
    reports_by_type: dict[str, int]
