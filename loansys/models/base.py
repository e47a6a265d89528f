"""
Base models and utilities for Pydantic v2.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ModelType = TypeVar("ModelType", bound="BaseModel")

CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def quantize_amount(value: Decimal) -> Decimal:
    """Round a monetary amount half-up to two decimal places."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class BaseModel(PydanticBaseModel):
    """Base model with common configuration and methods.

    Records are persisted with the camelCase keys used by the browser app's
    local-storage collections (``borrowerId``, ``disbursedAt``...), while Python
    code works with snake_case attribute names.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore",
    )

    def to_record(self) -> Dict[str, Any]:
        """Convert model to a JSON compatible record for a storage backend."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_record(cls: Type[ModelType], data: Dict[str, Any]) -> ModelType:
        """Build a model from a stored record."""
        return cls.model_validate(data)


class Entity(BaseModel):
    """Base for persisted entities with an integer identifier."""

    id: Optional[int] = Field(
        default=None,
        description="Unique identifier, assigned by the repository on first save",
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="Timestamp when the entity was created",
    )
