"""
Percentage and rate helpers shared by bookkeeping and reporting.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[int, float, Decimal]

ATTENDED_STATUSES = frozenset({"present", "late"})


def round_half_up(value: Number, digits: int = 0) -> Union[int, float]:
    """Round like a human would (0.5 -> 1) instead of banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def percentage(part: Number, total: Number, digits: int = 0) -> Union[int, float]:
    """part / total * 100, rounded half-up; 0 when total is 0."""
    if not total:
        return 0
    return round_half_up(Decimal(str(part)) / Decimal(str(total)) * 100, digits)


def attendance_percentage(statuses: Iterable[str]) -> int:
    """
    Share of attended marks.

    Present and late both count as attended.

    >>> attendance_percentage(["present", "present", "absent", "late"])
    75
    """
    values = [getattr(status, "value", status) for status in statuses]
    attended = sum(1 for status in values if status in ATTENDED_STATUSES)
    return percentage(attended, len(values))


def mean(values: Iterable[Number]) -> float:
    items = [Decimal(str(value)) for value in values]
    if not items:
        return 0.0
    return float(sum(items) / len(items))
