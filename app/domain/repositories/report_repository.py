"""
Report Repository Interface.
Draft-only mutations are single conditional statements so the state check and
the write cannot interleave with a concurrent status change.
"""

from typing import Any, Dict, List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.report import Report
from app.domain.schemas.report import ReportFilter


class ReportRepository(BaseRepository[Report]):
    """Interface for Report-specific operations."""

    def list_reports(self, filters: ReportFilter, user_id: Optional[str] = None) -> List[Report]:
        """Reports newest first, optionally restricted to one owner."""
        ...

    def update_if_draft(self, report_id: str, owner_id: str, values: Dict[str, Any]) -> Optional[Report]:
        """Apply ``values`` only while the report is a draft owned by ``owner_id``.

        Returns the refreshed report, or None when no row matched.
        """
        ...

    def delete_if_draft(self, report_id: str, owner_id: str) -> bool:
        ...

    def set_status(self, report_id: str, status: str) -> bool:
        ...

    def count_by_status(self) -> Dict[str, int]:
        ...

    def count_by_type(self) -> Dict[str, int]:
        ...
