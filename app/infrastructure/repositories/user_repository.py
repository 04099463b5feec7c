"""
SQLAlchemy Implementation of User Repository.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import DuplicateEmailException
from app.domain.models.report import Report, TYPE_INTERVENTION, TYPE_RED_FLAG
from app.domain.models.user import User, ROLES
from app.domain.repositories.user_repository import UserRepository
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def get_by_email(self, email: str) -> Optional[User]:
        with self._store_errors("get_by_email"):
            return self.db.query(User).filter(User.email == email).first()

    def email_exists(self, email: str) -> bool:
        with self._store_errors("email_exists"):
            return self.db.query(User.id).filter(User.email == email).first() is not None

    def create(self, obj_in: Any) -> User:
        """Insert a user; a unique-index violation means another request won the race."""
        user = User(**obj_in)
        with self._store_errors("create"):
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                raise DuplicateEmailException() from exc
            self.db.refresh(user)
        return user

    def set_role(self, user: User, role: str) -> User:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        return self.update(user, {"role": role})

    def list_with_report_counts(self) -> List[Dict[str, Any]]:
        with self._store_errors("list_with_report_counts"):
            rows = (
                self.db.query(
                    User,
                    func.count(Report.id).label("total_reports"),
                    func.coalesce(func.sum(case((Report.type == TYPE_RED_FLAG, 1), else_=0)), 0).label("red_flag_reports"),
                    func.coalesce(func.sum(case((Report.type == TYPE_INTERVENTION, 1), else_=0)), 0).label("intervention_reports"),
                )
                .outerjoin(Report, Report.user_id == User.id)
                .group_by(User.id)
                .order_by(User.created_at.desc())
                .all()
            )

        return [
            {
                "user": user,
                "total_reports": int(total or 0),
                "red_flag_reports": int(red_flags or 0),
                "intervention_reports": int(interventions or 0),
            }
            for user, total, red_flags, interventions in rows
        ]

    def count_by_role(self) -> Dict[str, int]:
        with self._store_errors("count_by_role"):
            rows = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        counts = {role: 0 for role in ROLES}
        counts.update({role: count for role, count in rows})
        return counts
