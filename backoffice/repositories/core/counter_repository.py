"""
Counter repository.

Atomic increment of named sequences using a single upsert statement.
Only the postgresql and sqlite dialects support it.
"""

from sqlalchemy.orm import Session

from backoffice.models.core.counter import Counter
from backoffice.services.common.errors import CounterUnavailableError


class CounterRepository:
    """Data access for named sequences."""

    def __init__(self, session: Session):
        self.session = session

    def _insert_construct(self, name: str):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise CounterUnavailableError(name, f"Atomic counters are not supported on {dialect}")
        return insert

    def increment(self, name: str) -> int:
        """
        Increment and return the post-increment value of a sequence.

        A missing sequence is created and its first value is 1.
        """
        insert = self._insert_construct(name)
        stmt = (
            insert(Counter)
            .values(name=name, seq=1)
            .on_conflict_do_update(
                index_elements=[Counter.name],
                set_={"seq": Counter.seq + 1},
            )
            .returning(Counter.seq)
        )
        return int(self.session.execute(stmt).scalar_one())

    def current(self, name: str) -> int:
        counter = self.session.get(Counter, name)
        return counter.seq if counter else 0
