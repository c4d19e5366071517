from typing import Generic, TypeVar, Type, Optional, List
from datetime import datetime, timedelta
from sqlmodel import SQLModel, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=SQLModel)


def stamp_updated_at(db_obj, now: Optional[datetime] = None) -> datetime:
    """Set ``updated_at`` so it is strictly later than the previous stamp."""
    now = now or datetime.utcnow()
    previous = db_obj.updated_at or db_obj.created_at
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    db_obj.updated_at = now
    return now


class BaseDAO(Generic[ModelType]):
    """
    Keyed record store over one table.

    Models must carry ``id``, ``created_at``, ``updated_at`` and ``is_active``.
    Every method works on the caller's session and only stages changes;
    committing is left to the unit of work that owns the session.
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get_all(self, db: AsyncSession) -> List[ModelType]:
        try:
            result = await db.execute(select(self.model).order_by(self.model.id))
            return result.scalars().all()
        except Exception as e:
            logger.error(f"Error getting all {self.model.__name__}", error=str(e))
            raise

    async def get_by_id(self, db: AsyncSession, id: int) -> Optional[ModelType]:
        try:
            result = await db.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Error getting {self.model.__name__} by id", id=id, error=str(e))
            raise

    async def exists(self, db: AsyncSession, id: int) -> bool:
        try:
            result = await db.execute(select(self.model.id).where(self.model.id == id))
            return result.scalar_one_or_none() is not None
        except Exception as e:
            logger.error(f"Error checking {self.model.__name__} existence", id=id, error=str(e))
            raise

    async def add(self, db: AsyncSession, *, db_obj: ModelType) -> ModelType:
        try:
            db_obj.created_at = datetime.utcnow()
            db_obj.updated_at = None
            db_obj.is_active = True
            db.add(db_obj)
            # Flush so the database assigns the id; the commit stays with the caller
            await db.flush()
            logger.info(f"Added {self.model.__name__}", id=db_obj.id)
            return db_obj
        except Exception as e:
            logger.error(f"Error adding {self.model.__name__}", error=str(e))
            raise

    async def create(self, db: AsyncSession, *, obj_in: dict) -> ModelType:
        return await self.add(db, db_obj=self.model(**obj_in))

    async def update(
        self, db: AsyncSession, *, db_obj: ModelType, obj_in: Optional[dict] = None
    ) -> ModelType:
        try:
            for field, value in (obj_in or {}).items():
                if hasattr(db_obj, field) and value is not None:
                    setattr(db_obj, field, value)

            stamp_updated_at(db_obj)
            db.add(db_obj)
            logger.info(f"Updated {self.model.__name__}", id=db_obj.id)
            return db_obj
        except Exception as e:
            logger.error(f"Error updating {self.model.__name__}", id=db_obj.id, error=str(e))
            raise

    async def delete(self, db: AsyncSession, *, id: int) -> Optional[ModelType]:
        """Logical delete: the row stays, only ``is_active`` flips."""
        try:
            obj = await self.get_by_id(db, id)
            if obj:
                obj.is_active = False
                stamp_updated_at(obj)
                db.add(obj)
                logger.info(f"Deactivated {self.model.__name__}", id=id)
            return obj
        except Exception as e:
            logger.error(f"Error deleting {self.model.__name__}", id=id, error=str(e))
            raise
