from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime

from inventory.dao.product_dao import product_dao
from inventory.models.product import Product


async def test_add_assigns_id_timestamps_and_active_flag(db):
    before = datetime.utcnow()
    product = Product(name="Widget", price=Decimal("9.99"), stock_quantity=5, is_active=False)

    stored = await product_dao.add(db, db_obj=product)

    assert stored is product
    assert stored.id is not None
    assert stored.is_active is True
    assert stored.updated_at is None
    assert stored.created_at >= before


async def test_ids_are_unique_per_row(seed):
    first, second = await seed(("A", "1.00", 1), ("B", "2.00", 2))

    assert first.id != second.id


async def test_get_by_id_missing_returns_none(db):
    assert await product_dao.get_by_id(db, 999) is None


async def test_exists(db, seed):
    (product,) = await seed(("Widget", "1.00", 1))

    assert await product_dao.exists(db, product.id) is True
    assert await product_dao.exists(db, product.id + 100) is False


async def test_get_all_includes_inactive_rows(db, seed):
    products = await seed(("A", "1.00", 1), ("B", "2.00", 2))
    await product_dao.delete(db, id=products[0].id)
    await db.commit()

    all_products = await product_dao.get_all(db)

    assert [p.id for p in all_products] == [p.id for p in products]


async def test_update_applies_fields_and_stamps_updated_at(db, seed):
    (product,) = await seed(("Widget", "1.00", 1))

    updated = await product_dao.update(db, db_obj=product, obj_in={"price": Decimal("2.50"), "name": None})
    await db.commit()

    assert updated.price == Decimal("2.50")
    assert updated.name == "Widget"
    assert updated.updated_at is not None
    assert updated.created_at <= updated.updated_at


async def test_successive_updates_are_strictly_ordered(db, seed):
    (product,) = await seed(("Widget", "1.00", 1))

    await product_dao.update(db, db_obj=product)
    first = product.updated_at
    await product_dao.update(db, db_obj=product)

    assert product.updated_at > first


async def test_delete_is_logical(db, seed):
    (product,) = await seed(("Widget", "1.00", 1))

    deleted = await product_dao.delete(db, id=product.id)
    await db.commit()

    fetched = await product_dao.get_by_id(db, product.id)
    assert deleted is fetched
    assert fetched.is_active is False
    assert fetched.updated_at is not None
    assert await product_dao.get_active_products(db) == []


async def test_delete_missing_is_noop(db):
    assert await product_dao.delete(db, id=42) is None


async def test_create_from_dict(db):
    product = await product_dao.create(
        db, obj_in={"name": "Gadget", "price": Decimal("3.00"), "stock_quantity": 7}
    )

    assert product.id is not None
    assert product.is_active is True


def test_timestamp_columns_store_naive_utc():
    for column in (Product.__table__.c.created_at, Product.__table__.c.updated_at):
        assert type(column.type) is DateTime
        assert column.type.timezone is False


async def test_timestamps_round_trip_through_add_update_and_bulk(session_factory, db):
    product = await product_dao.add(
        db, db_obj=Product(name="Widget", price=Decimal("100.00"), stock_quantity=1)
    )
    await db.commit()
    await product_dao.update(db, db_obj=product, obj_in={"stock_quantity": 2})
    await db.commit()
    first_update = product.updated_at
    await product_dao.bulk_update_prices(db, Decimal("10"))
    await db.commit()

    async with session_factory() as fresh:
        reloaded = await product_dao.get_by_id(fresh, product.id)

    assert reloaded.created_at == product.created_at
    assert reloaded.updated_at == product.updated_at
    assert reloaded.updated_at > first_update >= reloaded.created_at
    assert reloaded.price == Decimal("110.00")
    assert reloaded.stock_quantity == 2
