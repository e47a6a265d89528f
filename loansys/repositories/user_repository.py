"""
User repository for the user collection.
"""

from typing import List, Optional, Type

from ..models.user import User, UserRole
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    def _get_collection_name(self) -> str:
        return "users"

    def _get_model_class(self) -> Type[User]:
        return User

    def find_by_email(self, email: str) -> Optional[User]:
        """Find user by email address."""
        email = (email or "").strip().lower()
        for user in self._load_models():
            if user.email == email:
                return user
        return None

    def find_by_role(self, role: UserRole) -> List[User]:
        role = UserRole(role)
        return self.find_where(lambda user: user.role == role)
