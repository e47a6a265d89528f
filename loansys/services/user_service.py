"""
User service for user registration and management.
"""

from typing import List, Optional

from ..exceptions import PermissionDeniedError, ValidationError
from ..models.user import User, UserRole
from ..repositories.user_repository import UserRepository
from ..security.pii_protection import get_structured_logger
from .validators import require_text, validate_email

logger = get_structured_logger().get_logger(__name__)


class UserService:
    """Service for user management operations."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    def register_user(self, name: str, email: str, role=UserRole.BORROWER) -> User:
        """Register a new user; unknown roles fall back to borrower."""
        name = require_text(name, "name", "Please enter your full name.")
        email = validate_email(email)

        with self.user_repository.lock:
            if self.user_repository.find_by_email(email):
                raise ValidationError("User already exists with this email.", "email", email)
            user = self.user_repository.save(
                User(name=name, email=email, role=UserRole.from_value(role))
            )

        logger.info("User registered", operation="register_user", user_id=user.id, role=user.role.value)
        return user

    def update_user(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role=None,
    ) -> User:
        """Update name, email or role of an existing user."""
        changes = {}
        if name is not None:
            changes["name"] = require_text(name, "name", "Name cannot be empty.")
        if email is not None:
            changes["email"] = validate_email(email)
        if role is not None:
            changes["role"] = UserRole.from_value(role)

        with self.user_repository.lock:
            if "email" in changes:
                other = self.user_repository.find_by_email(changes["email"])
                if other is not None and other.id != user_id:
                    raise ValidationError("Another user already has this email.", "email", changes["email"])
            user = self.user_repository.update(user_id, lambda u: User.model_validate({**u.model_dump(), **changes}))

        logger.info("User updated", operation="update_user", user_id=user_id, fields=sorted(changes))
        return user

    def delete_user(self, user_id: int, acting_user_id: Optional[int] = None) -> bool:
        """Delete a user; an admin cannot delete their own account."""
        if acting_user_id is not None and acting_user_id == user_id:
            raise PermissionDeniedError("You cannot delete your own admin account.")
        deleted = self.user_repository.delete(user_id)
        logger.info("User deleted", operation="delete_user", user_id=user_id, deleted=deleted)
        return deleted

    def get_user(self, user_id: int) -> User:
        return self.user_repository.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.user_repository.find_by_email(email)

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        if role is None:
            return self.user_repository.find_all()
        return self.user_repository.find_by_role(role)

    def list_lenders(self) -> List[User]:
        return self.user_repository.find_by_role(UserRole.LENDER)

    def count(self) -> int:
        return self.user_repository.count()
