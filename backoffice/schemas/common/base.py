"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

__all__ = [
    "BaseSchema",
    "Money",
    "TimestampMixin",
    "AuditMixin",
    "BaseDBSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "BaseResponseSchema",
]

# Amounts are held as Decimal and rendered as JSON numbers
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]


def _document(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_document(item) for item in value]
    return value


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Fields are snake_case in Python and camelCase on the wire; both
    spellings are accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=False,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    def to_wire(self) -> dict:
        """camelCase, JSON-safe dump."""
        return self.model_dump(by_alias=True, mode="json")

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        """
        Values keyed by model attribute.

        Nested schemas become camelCase JSON documents for JSON columns.
        With exclude_unset, only fields sent by the client are returned
        and explicit nulls are ignored.
        """
        names = self.model_fields_set if exclude_unset else type(self).model_fields.keys()
        values = {}
        for name in names:
            value = getattr(self, name)
            if exclude_unset and value is None:
                continue
            values[name] = _document(value)
        return values


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")


class AuditMixin(BaseModel):
    """Mixin for the acting-user envelope."""

    created_by_id: Optional[UUID] = Field(default=None, description="Creating user")
    updated_by_id: Optional[UUID] = Field(default=None, description="Last updating user")


class BaseDBSchema(BaseSchema, TimestampMixin):
    """Base schema for database entities with ID and timestamps."""

    id: UUID = Field(..., description="Unique identifier")


class BaseCreateSchema(BaseSchema):
    """Base schema for create operations."""
    pass


class BaseUpdateSchema(BaseSchema):
    """
    Base schema for update operations.

    Subclasses declare every field Optional; services apply only the
    fields that were actually sent.
    """

    def changes(self) -> dict:
        return self.column_values(exclude_unset=True)


class BaseResponseSchema(BaseDBSchema, AuditMixin):
    """Base schema for API responses."""
    pass
