import logging
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import create_engine, delete, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.trending.domain.exceptions import StoreUnavailable
from src.trending.domain.impression import Impression
from src.trending.interfaces.impression_store import ImpressionStore
from src.trending.store.models import Base, ImpressionModel

logger = logging.getLogger(__name__)

_table = ImpressionModel.__table__


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlImpressionStore(ImpressionStore):
    """
    Impression log on a SQLAlchemy engine (PostgreSQL in production).
    Count-mode aggregation is pushed down to a GROUP BY.
    """

    STREAM_BATCH = 1000  # rows fetched per round trip when streaming a window

    def __init__(self, engine: Engine):
        self.engine = engine
        self.ensure_schema()

    @classmethod
    def from_dsn(cls, dsn: str, statement_timeout_ms: Optional[int] = None) -> "SqlImpressionStore":
        connect_args = {}
        if statement_timeout_ms and dsn.startswith("postgresql"):
            connect_args["options"] = f"-c statement_timeout={int(statement_timeout_ms)}"
        engine = create_engine(dsn, pool_pre_ping=True, future=True, connect_args=connect_args)
        return cls(engine)

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"schema setup failed: {e.__class__.__name__}") from e

    def append(self, impression: Impression) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    insert(_table).values(
                        id=impression.impression_id,
                        entity_id=impression.entity_id,
                        actor_id=impression.actor_id,
                        observed_at=_as_utc(impression.observed_at),
                    )
                )
        except SQLAlchemyError as e:
            logger.error(f"Impression insert failed for entity={impression.entity_id}: {e}")
            raise StoreUnavailable("impression insert failed") from e

    def scan(self, start: datetime, end: datetime) -> List[Impression]:
        start, end = _as_utc(start), _as_utc(end)
        query = (
            select(_table.c.id, _table.c.entity_id, _table.c.actor_id, _table.c.observed_at)
            .where(_table.c.observed_at >= start, _table.c.observed_at < end)
            .order_by(_table.c.observed_at.asc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Impression scan failed for [{start}, {end}): {e}")
            raise StoreUnavailable("impression scan failed") from e

        return [
            Impression(
                impression_id=row.id,
                entity_id=row.entity_id,
                actor_id=row.actor_id,
                observed_at=_as_utc(row.observed_at),
            )
            for row in rows
        ]

    def iter_observations(self, start: datetime, end: datetime) -> Iterator[Tuple[str, datetime]]:
        start, end = _as_utc(start), _as_utc(end)
        query = (
            select(_table.c.entity_id, _table.c.observed_at)
            .where(_table.c.observed_at >= start, _table.c.observed_at < end)
        )
        try:
            with self.engine.connect() as conn:
                result = conn.execution_options(yield_per=self.STREAM_BATCH).execute(query)
                for row in result:
                    yield row.entity_id, _as_utc(row.observed_at)
        except SQLAlchemyError as e:
            logger.error(f"Impression stream failed for [{start}, {end}): {e}")
            raise StoreUnavailable("impression stream failed") from e

    def count_by_entity(self, start: datetime, end: datetime) -> Dict[str, int]:
        start, end = _as_utc(start), _as_utc(end)
        query = (
            select(_table.c.entity_id, func.count().label("n"))
            .where(_table.c.observed_at >= start, _table.c.observed_at < end)
            .group_by(_table.c.entity_id)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Impression count failed for [{start}, {end}): {e}")
            raise StoreUnavailable("impression count failed") from e
        return {row.entity_id: int(row.n) for row in rows}

    def prune(self, before: datetime) -> int:
        before = _as_utc(before)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(_table).where(_table.c.observed_at < before))
        except SQLAlchemyError as e:
            logger.error(f"Impression prune failed before {before}: {e}")
            raise StoreUnavailable("impression prune failed") from e
        return int(result.rowcount or 0)

    def close(self) -> None:
        self.engine.dispose()
