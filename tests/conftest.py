from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from inventory.core.unit_of_work import UnitOfWork
from inventory.dao.product_dao import product_dao
from inventory.models.product import Product


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_uow(session_factory):
    return lambda: UnitOfWork(session_factory)


@pytest.fixture
def seed(db):
    """Insert ``(name, price, stock)`` rows through the DAO and commit them."""

    async def _seed(*rows):
        products = []
        for name, price, stock in rows:
            product = Product(name=name, price=Decimal(price), stock_quantity=stock)
            products.append(await product_dao.add(db, db_obj=product))
        await db.commit()
        return products

    return _seed
