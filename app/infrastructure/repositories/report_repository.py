"""
SQLAlchemy Implementation of Report Repository.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from app.domain.models.report import Report, REPORT_STATUSES, REPORT_TYPES, STATUS_DRAFT
from app.domain.repositories.report_repository import ReportRepository
from app.domain.schemas.report import ReportFilter
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyReportRepository(SQLAlchemyRepository[Report], ReportRepository):
    """Report repository implementation using SQLAlchemy."""

    def list_reports(self, filters: ReportFilter, user_id: Optional[str] = None) -> List[Report]:
        query = self.db.query(Report)

        if user_id:
            query = query.filter(Report.user_id == user_id)
        if filters.status:
            query = query.filter(Report.status == filters.status)
        if filters.type:
            query = query.filter(Report.type == filters.type)

        with self._store_errors("list_reports"):
            return query.order_by(Report.created_at.desc()).all()

    def update_if_draft(self, report_id: str, owner_id: str, values: Dict[str, Any]) -> Optional[Report]:
        values = {**values, "updated_at": datetime.now(timezone.utc)}
        with self._store_errors("update_if_draft"):
            matched = (
                self.db.query(Report)
                .filter(
                    Report.id == report_id,
                    Report.user_id == owner_id,
                    Report.status == STATUS_DRAFT,
                )
                .update(values, synchronize_session=False)
            )
            self.db.commit()
            if not matched:
                return None
            self.db.expire_all()
            return self.db.get(Report, report_id)

    def delete_if_draft(self, report_id: str, owner_id: str) -> bool:
        with self._store_errors("delete_if_draft"):
            matched = (
                self.db.query(Report)
                .filter(
                    Report.id == report_id,
                    Report.user_id == owner_id,
                    Report.status == STATUS_DRAFT,
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
            self.db.expire_all()
        return matched > 0

    def set_status(self, report_id: str, status: str) -> bool:
        with self._store_errors("set_status"):
            matched = (
                self.db.query(Report)
                .filter(Report.id == report_id)
                .update(
                    {"status": status, "updated_at": datetime.now(timezone.utc)},
                    synchronize_session=False,
                )
            )
            self.db.commit()
            self.db.expire_all()
        return matched > 0

    def count_by_status(self) -> Dict[str, int]:
        with self._store_errors("count_by_status"):
            rows = self.db.query(Report.status, func.count(Report.id)).group_by(Report.status).all()
        counts = {status: 0 for status in REPORT_STATUSES}
        counts.update({status: count for status, count in rows})
        return counts

    def count_by_type(self) -> Dict[str, int]:
        with self._store_errors("count_by_type"):
            rows = self.db.query(Report.type, func.count(Report.id)).group_by(Report.type).all()
        counts = {report_type: 0 for report_type in REPORT_TYPES}
        counts.update({report_type: count for report_type, count in rows})
        return counts
