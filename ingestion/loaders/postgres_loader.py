"""
Persist canonical POI documents into PostgreSQL with idempotent upserts
"""

from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import func, literal_column, or_
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from core.database import create_engine, create_session_maker
from ingestion.base import PoiRepository, dedupe_by_external_id
from models.poi import PoiDocument
from schemas.poi import PoiDoc, UpsertResult
import logging

logger = logging.getLogger(__name__)


def build_upsert_statement(docs: Sequence[PoiDoc]):
    """
    INSERT ... ON CONFLICT (external_id) DO UPDATE for one deduplicated batch.

    - the surrogate id is only written by the INSERT branch
    - last_updated and raw are overwritten on conflict
    - rows whose raw and last_updated are unchanged are left untouched
    - RETURNING (xmax = 0) tells inserted rows from updated ones
    """
    stmt = insert(PoiDocument).values([
        {
            "id": doc.id,
            "external_id": doc.external_id,
            "last_updated": doc.last_updated,
            "raw": doc.raw,
        }
        for doc in docs
    ])

    stmt = stmt.on_conflict_do_update(
        index_elements=[PoiDocument.external_id],
        set_={
            "last_updated": stmt.excluded.last_updated,
            "raw": stmt.excluded.raw,
            "updated_at": func.now(),
        },
        where=or_(
            PoiDocument.raw.is_distinct_from(stmt.excluded.raw),
            PoiDocument.last_updated.is_distinct_from(stmt.excluded.last_updated),
        ),
    )
    return stmt.returning(literal_column("(xmax = 0)").label("inserted"))


def count_results(rows: Iterable[Any]) -> UpsertResult:
    """Split RETURNING rows into inserts and updates; unknown flags count as neither"""
    upserted = 0
    modified = 0
    for row in rows:
        inserted = getattr(row, "inserted", None)
        if inserted is True:
            upserted += 1
        elif inserted is False:
            modified += 1
    return UpsertResult(upserted=upserted, modified=modified)


class PostgresPoiRepository(PoiRepository):
    """
    PostgreSQL sink for POI documents.

    Ensures:
    - No duplicate rows on repeated runs (unique external_id)
    - The surrogate id written on first insert survives re-imports
    - Mutable fields always reflect the latest fetch

    The session is opened lazily on the first non-empty batch, reused for the
    repository's lifetime and released by ``close()``.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        session_maker: Optional[async_sessionmaker] = None,
    ):
        self.database_url = database_url
        self._session_maker = session_maker
        self._engine: Optional[AsyncEngine] = None
        self._session: Optional[AsyncSession] = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    def _get_session(self) -> AsyncSession:
        if self._session is None:
            if self._session_maker is None:
                self._engine = create_engine(self.database_url)
                self._session_maker = create_session_maker(self._engine)
            self._session = self._session_maker()
            logger.debug("Opened repository session")
        return self._session

    async def upsert_many(self, docs: Sequence[PoiDoc]) -> UpsertResult:
        """
        Upsert a batch keyed by external_id.

        Args:
            docs: canonical documents; duplicate external ids are allowed

        Returns:
            Counts of inserted and modified documents
        """
        if not docs:
            return UpsertResult()

        unique: List[PoiDoc] = dedupe_by_external_id(docs)
        if len(unique) < len(docs):
            logger.info(f"Collapsed {len(docs) - len(unique)} duplicate external ids in batch")

        session = self._get_session()
        try:
            result = await session.execute(build_upsert_statement(unique))
            rows = result.all()
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        counts = count_results(rows)
        logger.debug(
            f"Upserted batch of {len(unique)}: "
            f"{counts.upserted} inserted, {counts.modified} modified"
        )
        return counts

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
