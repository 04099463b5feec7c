"""Admin service — user listing and platform statistics for the admin dashboard."""

from typing import List

from app.core.exceptions import ForbiddenException, InvalidTokenException
from app.domain.models.user import ROLE_ADMIN
from app.domain.repositories.report_repository import ReportRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.admin import PlatformStats, UserWithReportCount
from app.domain.schemas.auth import TokenClaims, UserRead


class AdminService:
    def __init__(self, users: UserRepository, reports: ReportRepository):
        self.users = users
        self.reports = reports

    def _require_admin(self, claims: TokenClaims) -> None:
        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise InvalidTokenException("Account no longer exists")
        if user.role != ROLE_ADMIN:
            raise ForbiddenException("Admin access required")

    def list_users(self, claims: TokenClaims) -> List[UserWithReportCount]:
        self._require_admin(claims)
        return [
            UserWithReportCount(
                **UserRead.model_validate(row["user"]).model_dump(),
                total_reports=row["total_reports"],
                red_flag_reports=row["red_flag_reports"],
                intervention_reports=row["intervention_reports"],
            )
            for row in self.users.list_with_report_counts()
        ]

    def stats(self, claims: TokenClaims) -> PlatformStats:
        self._require_admin(claims)
        roles = self.users.count_by_role()
        by_status = self.reports.count_by_status()
        return PlatformStats(
            total_users=sum(roles.values()),
            total_admins=roles.get(ROLE_ADMIN, 0),
            total_reports=sum(by_status.values()),
            reports_by_status=by_status,
            reports_by_type=self.reports.count_by_type(),
        )
