"""
Base model components shared by all entities.
"""

from backoffice.models.base.base_model import Base, BaseModel
from backoffice.models.base.mixins import AuditMixin, TimestampMixin
from backoffice.models.base.enums import enum_type

__all__ = [
    "Base",
    "BaseModel",
    "AuditMixin",
    "TimestampMixin",
    "enum_type",
]
