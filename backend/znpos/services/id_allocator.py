# Overview: Monotonic per-namespace id allocation on the counters table.

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..models import Counter


class IdAllocator:
    """
    Issues strictly increasing integer ids per entity namespace.

    The increment is a single UPDATE on the namespace's counter row; the row
    write lock it takes is held until the caller's transaction ends, so two
    callers can never read the same value. Ids of inserts that later fail
    may be lost; they are never reissued twice.
    """

    def __init__(self, session):
        self.session = session

    def next_id(self, namespace: str) -> int:
        if not namespace:
            raise ValueError("namespace is required")

        seq = self._increment(namespace)
        if seq is not None:
            return seq

        # Unseen namespace: first caller inserts seq=1. A concurrent first
        # caller loses the insert race and falls back to the increment.
        try:
            with self.session.begin_nested():
                self.session.add(Counter(namespace=namespace, seq=1))
            return 1
        except IntegrityError:
            seq = self._increment(namespace)
            if seq is None:
                raise
            return seq

    def peek(self, namespace: str) -> int:
        """Last id issued for a namespace (0 if none). Read-only."""
        current = self.session.execute(
            select(Counter.seq).where(Counter.namespace == namespace)
        ).scalar()
        return int(current or 0)

    def _increment(self, namespace: str) -> int | None:
        stmt = (
            update(Counter)
            .where(Counter.namespace == namespace)
            .values(seq=Counter.seq + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if not result.rowcount:
            return None
        return self.session.execute(
            select(Counter.seq).where(Counter.namespace == namespace)
        ).scalar_one()
