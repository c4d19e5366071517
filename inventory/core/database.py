from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy import event
from inventory.core.config import settings
from inventory.models import Product  # noqa: F401  registers the products table
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: str = settings.database_url, **kwargs) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to server databases."""
    options = {
        "echo": settings.log_level.upper() == "DEBUG",
        "future": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    options.update(kwargs)
    return create_async_engine(database_url, **options)


engine: AsyncEngine = build_engine()


# Set search_path to the schema from settings after connecting
if engine.dialect.name == "postgresql":
    @event.listens_for(engine.sync_engine, "connect")
    def set_search_path(dbapi_connection, connection_record):
        logger.info("Setting search path to %s", settings.db_schema)
        cursor = dbapi_connection.cursor()
        cursor.execute(f"SET search_path TO {settings.db_schema}")
        cursor.close()


async_session_maker = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def create_db_and_tables(bind: AsyncEngine = None):
    bind = bind or engine
    logger.info("Creating database tables")
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db(bind: AsyncEngine = None):
    await (bind or engine).dispose()
