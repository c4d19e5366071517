from typing import Any, Callable, Dict, Optional
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from inventory.core.database import async_session_maker
from inventory.dao.product_dao import ProductDAO, product_dao
import structlog

logger = structlog.get_logger()


class UnitOfWork:
    """
    Request-scoped session holder.

    DAO calls made through ``uow.products`` with ``uow.session`` only stage
    changes; ``commit()`` flushes them as one batch and reports how many rows
    were written. The session is closed on every exit path and rolled back
    when the block raises.

        async with UnitOfWork() as uow:
            await uow.products.bulk_update_stock(uow.session, [2, 3], 10)
            affected = await uow.commit()
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] = async_session_maker):
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self.products: ProductDAO = product_dao
        # Keyed by object identity; holding the objects keeps those ids from being reused
        self._touched: Dict[int, Any] = {}

    async def __aenter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        event.listen(self.session.sync_session, "before_flush", self._track_changes)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                logger.error(
                    "Unit of work failed, rolling back",
                    error_type=exc_type.__name__,
                    error=str(exc),
                )
                await self.rollback()
        finally:
            event.remove(self.session.sync_session, "before_flush", self._track_changes)
            await self.session.close()

    def _track_changes(self, session, flush_context, instances) -> None:
        for obj in session.new:
            self._touched[id(obj)] = obj
        for obj in session.dirty:
            if session.is_modified(obj):
                self._touched[id(obj)] = obj
        for obj in session.deleted:
            self._touched[id(obj)] = obj

    async def commit(self) -> int:
        try:
            await self.session.commit()
        except Exception as e:
            logger.error("Error committing unit of work", error=str(e))
            self._touched.clear()
            raise
        affected = len(self._touched)
        self._touched.clear()
        logger.info("Committed unit of work", affected=affected)
        return affected

    async def rollback(self) -> None:
        self._touched.clear()
        await self.session.rollback()
