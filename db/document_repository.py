from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wedding_kb.exception.custom_exception import PersistenceError
from wedding_kb.logger import GLOBAL_LOGGER as log

from .models import DocumentEnhanced, WeddingVendor


class DocumentRepository:
    """
    Append-only writes for ingested documents and vendors.

    Every insert opens its own session from the factory and commits it, so
    concurrent inserts within a batch share no session state.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _insert(self, obj, label: str) -> None:
        try:
            async with self.session_factory() as db:
                db.add(obj)
                await db.commit()
        except SQLAlchemyError as e:
            log.error(f"Failed to insert {label}", error=str(e))
            raise PersistenceError(f"Failed to insert {label}: {e}", e) from e

    async def insert_chunk(self, row: Dict[str, Any]) -> None:
        await self._insert(DocumentEnhanced(**row), "chunk row")

    async def insert_parent(self, row: Dict[str, Any]) -> None:
        await self._insert(DocumentEnhanced(**row), "parent document row")
        log.info(
            "Parent document stored",
            document_id=row.get("document_id"),
            total_chunks=row.get("total_chunks"),
        )

    async def insert_vendor(self, row: Dict[str, Any]) -> None:
        await self._insert(WeddingVendor(**row), "vendor row")
