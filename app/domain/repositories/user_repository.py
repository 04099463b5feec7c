"""
User Repository Interface.
The Credential Store: persisted accounts, looked up by id or email.
"""

from typing import Any, Dict, List, Optional

from app.domain.repositories.base import BaseRepository
from app.domain.models.user import User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get the account that owns ``email``, if any."""
        ...

    def email_exists(self, email: str) -> bool:
        ...

    def set_role(self, user: User, role: str) -> User:
        """Flip the stored role. The only mutation allowed on an account."""
        ...

    def list_with_report_counts(self) -> List[Dict[str, Any]]:
        """Every user with total / red-flag / intervention report counts, newest first."""
        ...

    def count_by_role(self) -> Dict[str, int]:
        ...
