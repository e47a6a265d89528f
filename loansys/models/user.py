"""
User domain model and roles.
"""

from enum import Enum

from pydantic import Field, field_validator

from .base import Entity


class UserRole(str, Enum):
    """Roles with their own dashboard and loan scope."""

    ADMIN = "admin"
    LENDER = "lender"
    BORROWER = "borrower"
    ANALYST = "analyst"

    @classmethod
    def from_value(cls, value) -> "UserRole":
        """Parse a role, falling back to borrower for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.BORROWER


class User(Entity):
    """Application user.

    Attributes:
        id: Unique identifier
        name: Display name
        email: Lower-cased, unique e-mail address
        role: The user's role
        created_at: Timestamp when the user was registered
    """

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(
        ...,
        pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
        description="A valid email address",
    )
    role: UserRole = Field(default=UserRole.BORROWER)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def has_role(self, role: UserRole) -> bool:
        return self.role == role
