from typing import Iterable, List, Optional
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from sqlmodel import select
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from inventory.dao.base_dao import BaseDAO, stamp_updated_at
from inventory.models.enums import ProductSortField
from inventory.models.product import Product
import structlog

logger = structlog.get_logger()

PRICE_SCALE = Decimal("0.01")

_SORT_COLUMNS = {
    ProductSortField.NAME: func.lower(Product.name),
    ProductSortField.PRICE: Product.price,
    ProductSortField.STOCK: Product.stock_quantity,
    ProductSortField.CREATED_AT: Product.created_at,
    ProductSortField.ID: Product.id,
}


def is_active():
    return Product.is_active == True


def resolve_sort_column(sort_by: Optional[str]):
    """Map a sort key to a column; unknown keys sort by id."""
    try:
        field = ProductSortField((sort_by or "").strip().lower())
    except ValueError:
        field = ProductSortField.ID
    return _SORT_COLUMNS[field]


def adjust_price(price: Decimal, percentage: Decimal, increase: bool = True) -> Decimal:
    rate = Decimal(str(percentage)) / 100
    factor = Decimal(1) + rate if increase else Decimal(1) - rate
    return (Decimal(price) * factor).quantize(PRICE_SCALE, rounding=ROUND_HALF_UP)


class ProductDAO(BaseDAO[Product]):
    def __init__(self):
        super().__init__(Product)

    async def _fetch(
        self,
        db: AsyncSession,
        *criteria,
        order_by=None,
        skip: int = 0,
        limit: Optional[int] = None,
        operation: str = "query",
        **log_context,
    ) -> List[Product]:
        try:
            stmt = select(Product).where(*criteria).order_by(*(order_by or (Product.id,)))
            if skip:
                stmt = stmt.offset(skip)
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await db.execute(stmt)
            return result.scalars().all()
        except Exception as e:
            logger.error(f"Error running product {operation}", error=str(e), **log_context)
            raise

    async def get_active_products(self, db: AsyncSession, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(db, is_active(), skip=skip, limit=limit, operation="active query")

    async def get_inactive_products(self, db: AsyncSession, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db, Product.is_active == False, skip=skip, limit=limit, operation="inactive query"
        )

    async def get_by_price_range(
        self, db: AsyncSession, min_price: Decimal, max_price: Decimal, *, skip: int = 0, limit: Optional[int] = None
    ) -> List[Product]:
        return await self._fetch(
            db,
            Product.price >= min_price,
            Product.price <= max_price,
            is_active(),
            skip=skip,
            limit=limit,
            operation="price range query",
            min_price=str(min_price),
            max_price=str(max_price),
        )

    async def get_above_price(self, db: AsyncSession, price: Decimal, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db, Product.price >= price, is_active(), skip=skip, limit=limit,
            operation="above price query", price=str(price),
        )

    async def get_below_price(self, db: AsyncSession, price: Decimal, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db, Product.price <= price, is_active(), skip=skip, limit=limit,
            operation="below price query", price=str(price),
        )

    async def get_low_stock_products(self, db: AsyncSession, threshold: int, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db, Product.stock_quantity <= threshold, is_active(), skip=skip, limit=limit,
            operation="low stock query", threshold=threshold,
        )

    async def get_out_of_stock_products(self, db: AsyncSession, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db, Product.stock_quantity == 0, is_active(), skip=skip, limit=limit,
            operation="out of stock query",
        )

    async def get_created_between(
        self, db: AsyncSession, start_date: datetime, end_date: datetime, *, skip: int = 0, limit: Optional[int] = None
    ) -> List[Product]:
        return await self._fetch(
            db,
            Product.created_at >= start_date,
            Product.created_at <= end_date,
            is_active(),
            skip=skip,
            limit=limit,
            operation="created between query",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )

    async def get_recently_added(self, db: AsyncSession, days: int, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        cutoff = datetime.utcnow() - timedelta(days=days)
        return await self._fetch(
            db, Product.created_at >= cutoff, is_active(), skip=skip, limit=limit,
            operation="recently added query", days=days,
        )

    async def get_recently_updated(self, db: AsyncSession, days: int, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        # NULL updated_at compares as unknown, so never-updated rows drop out
        cutoff = datetime.utcnow() - timedelta(days=days)
        return await self._fetch(
            db, Product.updated_at >= cutoff, is_active(), skip=skip, limit=limit,
            operation="recently updated query", days=days,
        )

    async def search_by_name(self, db: AsyncSession, search_term: str, *, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        return await self._fetch(
            db,
            Product.name.icontains(search_term, autoescape=True),
            is_active(),
            skip=skip,
            limit=limit,
            operation="name search",
            search_term=search_term,
        )

    async def get_sorted(
        self, db: AsyncSession, sort_by: Optional[str], ascending: bool = True, *, skip: int = 0, limit: Optional[int] = None
    ) -> List[Product]:
        column = resolve_sort_column(sort_by)
        order_by = [column.asc() if ascending else column.desc()]
        if column is not Product.id:
            order_by.append(Product.id.asc() if ascending else Product.id.desc())
        return await self._fetch(
            db, is_active(), order_by=order_by, skip=skip, limit=limit,
            operation="sorted query", sort_by=sort_by, ascending=ascending,
        )

    async def bulk_update_prices(
        self,
        db: AsyncSession,
        percentage: Decimal,
        increase: bool = True,
        product_ids: Optional[Iterable[int]] = None,
    ) -> int:
        """
        Scale the price of every active product by ``percentage``.

        When ``product_ids`` is given only the active products among them are
        touched. Changes are staged on ``db``; returns how many were adjusted.
        """
        criteria = [is_active()]
        if product_ids is not None:
            criteria.append(Product.id.in_(list(product_ids)))
        products = await self._fetch(db, *criteria, operation="bulk price read")

        try:
            now = datetime.utcnow()
            for product in products:
                product.price = adjust_price(product.price, percentage, increase)
                stamp_updated_at(product, now)
            db.add_all(products)
            logger.info(
                "Staged bulk price update",
                percentage=str(percentage),
                increase=increase,
                count=len(products),
            )
            return len(products)
        except Exception as e:
            logger.error("Error staging bulk price update", percentage=str(percentage), error=str(e))
            raise

    async def bulk_update_stock(self, db: AsyncSession, product_ids: Iterable[int], quantity: int) -> int:
        """Overwrite ``stock_quantity`` on the listed active products; unknown ids are skipped."""
        ids = list(product_ids)
        products = await self._fetch(
            db, Product.id.in_(ids), is_active(), operation="bulk stock read", product_ids=ids
        )

        now = datetime.utcnow()
        for product in products:
            product.stock_quantity = quantity
            stamp_updated_at(product, now)
        db.add_all(products)
        logger.info("Staged bulk stock update", quantity=quantity, requested=len(ids), count=len(products))
        return len(products)

    async def get_average_price(self, db: AsyncSession) -> Decimal:
        try:
            result = await db.execute(
                select(func.sum(Product.price), func.count(Product.id)).where(is_active())
            )
            total, count = result.one()
            if not count:
                return Decimal("0")
            return Decimal(str(total)) / count
        except Exception as e:
            logger.error("Error computing average product price", error=str(e))
            raise

    async def get_total_stock_quantity(self, db: AsyncSession) -> int:
        try:
            result = await db.execute(
                select(func.coalesce(func.sum(Product.stock_quantity), 0)).where(is_active())
            )
            return int(result.scalar_one())
        except Exception as e:
            logger.error("Error computing total stock quantity", error=str(e))
            raise

    async def get_active_count(self, db: AsyncSession) -> int:
        try:
            result = await db.execute(select(func.count(Product.id)).where(is_active()))
            return int(result.scalar_one())
        except Exception as e:
            logger.error("Error counting active products", error=str(e))
            raise

    async def is_name_unique(self, db: AsyncSession, name: str) -> bool:
        try:
            result = await db.execute(
                select(Product.id).where(Product.name == name).where(is_active()).limit(1)
            )
            return result.scalar_one_or_none() is None
        except Exception as e:
            logger.error("Error checking product name uniqueness", name=name, error=str(e))
            raise

    async def has_sufficient_stock(self, db: AsyncSession, product_id: int, requested_quantity: int) -> bool:
        product = await self.get_by_id(db, product_id)
        return product is not None and product.stock_quantity >= requested_quantity


product_dao = ProductDAO()
