from contextlib import asynccontextmanager
import asyncio

from inventory.core.config import settings
from inventory.core.database import create_db_and_tables, close_db
from inventory.core.logging import setup_logging
from inventory.services.product_service import product_service

logger = setup_logging()


@asynccontextmanager
async def lifespan():
    logger.info("Inventory store startup", environment=settings.environment)
    try:
        await create_db_and_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    try:
        yield
    finally:
        logger.info("Inventory store shutdown")
        await close_db()
        logger.info("Database connections closed")


async def run() -> None:
    async with lifespan():
        stats = await product_service.get_statistics()
        logger.info(
            "Inventory summary",
            active_count=stats.active_count,
            total_stock_quantity=stats.total_stock_quantity,
            average_price=str(stats.average_price),
        )


if __name__ == "__main__":
    asyncio.run(run())
