"""
Named sequence counters used for human-readable identifiers.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base.base_model import Base


class Counter(Base):
    """
    One row per named sequence.

    The row is created on first use and incremented atomically.
    """

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        comment="Sequence name",
    )
    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
        comment="Last issued value",
    )

    def __repr__(self) -> str:
        return f"<Counter(name={self.name}, seq={self.seq})>"
