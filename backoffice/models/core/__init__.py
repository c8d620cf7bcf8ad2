"""Core infrastructure models."""

from backoffice.models.core.counter import Counter

__all__ = ["Counter"]
