"""
Storage query engine: the read primitives the hydration layer is
written against.

Design notes
------------
- A single ``AsyncSession`` refuses concurrent operations, so every
  primitive checks out its own short-lived session from the factory.  That
  is what lets the relation loaders of one retrieval call run under
  ``asyncio.gather`` as genuinely parallel queries.
- An optional semaphore caps the number of queries one engine keeps in
  flight so a wide fan-out cannot drain the connection pool.
- Errors raised by the driver or by SQLAlchemy propagate unchanged; the
  retrieval functions decide how to surface them.
- ORM rows come back detached but fully loaded (``expire_on_commit=False``
  and no lazy relationships are touched downstream).
"""
import asyncio
import logging
from collections.abc import Iterable, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class QueryEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_concurrency: int | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._limit = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    @asynccontextmanager
    async def _session(self):
        if self._limit is None:
            async with self._session_factory() as session:
                yield session
            return
        async with self._limit:
            async with self._session_factory() as session:
                yield session

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    async def select_where(
        self,
        model,
        *criteria,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list:
        """Return ORM rows of *model* matching every criterion, in *order_by* order."""
        stmt = select(model).where(*criteria).order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def select_where_id_in(
        self,
        model,
        column,
        ids: Iterable[Any],
        order_by: Sequence[Any] = (),
        where: Sequence[Any] = (),
    ) -> list:
        """
        Return rows of *model* whose *column* is one of *ids*, further
        restricted by the optional *where* criteria.

        The ``IN`` form is used for every non-empty id list, a single id
        included.  An empty list short-circuits to ``[]`` because some
        engines reject ``IN ()``.
        """
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []
        logger.debug("select %s where %s in (%d ids)", model.__tablename__, column.key, len(id_list))
        return await self.select_where(model, column.in_(id_list), *where, order_by=order_by)

    async def join_select(
        self,
        projection: Sequence[Any],
        join_from,
        join_to,
        onclause,
        *criteria,
        order_by: Sequence[Any] = (),
        outer: bool = False,
    ) -> list[RowMapping]:
        """
        Return ``projection`` mappings from ``join_from JOIN join_to ON onclause``.

        Rows come back as read-only mappings keyed by column label.
        """
        stmt = (
            select(*projection)
            .select_from(join_from)
            .join(join_to, onclause, isouter=outer)
            .where(*criteria)
            .order_by(*order_by)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return list(result.mappings().all())

    async def count_where(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model).where(*criteria)
        async with self._session() as session:
            return (await session.execute(stmt)).scalar_one()
