from typing import Callable, List, Optional
from datetime import datetime
from decimal import Decimal
from inventory.core.config import settings
from inventory.core.unit_of_work import UnitOfWork
from inventory.models.product import Product, ProductCreate, ProductUpdate
from inventory.schemas.product_schemas import (
    BulkPriceUpdateRequest,
    BulkStockUpdateRequest,
    PriceRangeQuery,
    ProductStatistics,
    SortQuery,
)
import structlog

logger = structlog.get_logger()


class ProductService:
    """
    Caller-side entry point for product inventory work.

    Each call opens its own unit of work; write calls commit before
    returning. Missing products come back as ``None``/``False``.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork] = UnitOfWork):
        self.uow_factory = uow_factory

    async def create_product(self, product_create: ProductCreate) -> Product:
        async with self.uow_factory() as uow:
            product = await uow.products.create(uow.session, obj_in=product_create.model_dump())
            await uow.commit()
            logger.info("Product created successfully", product_id=product.id)
            return product

    async def get_product(self, product_id: int) -> Optional[Product]:
        async with self.uow_factory() as uow:
            product = await uow.products.get_by_id(uow.session, product_id)
            if not product:
                logger.info("Product not found", product_id=product_id)
            return product

    async def get_all_products(self) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_all(uow.session)

    async def get_products(self, skip: int = 0, limit: Optional[int] = None) -> List[Product]:
        async with self.uow_factory() as uow:
            products = await uow.products.get_active_products(uow.session, skip=skip, limit=limit)
            logger.info("Retrieved products", count=len(products), skip=skip, limit=limit)
            return products

    async def get_inactive_products(self) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_inactive_products(uow.session)

    async def product_exists(self, product_id: int) -> bool:
        async with self.uow_factory() as uow:
            return await uow.products.exists(uow.session, product_id)

    async def update_product(self, product_id: int, product_update: ProductUpdate) -> Optional[Product]:
        async with self.uow_factory() as uow:
            product = await uow.products.get_by_id(uow.session, product_id)
            if not product:
                logger.warning("Update skipped, product not found", product_id=product_id)
                return None

            update_data = product_update.model_dump(exclude_unset=True)
            product = await uow.products.update(uow.session, db_obj=product, obj_in=update_data)
            await uow.commit()
            logger.info("Product updated successfully", product_id=product_id, fields=sorted(update_data))
            return product

    async def delete_product(self, product_id: int) -> bool:
        async with self.uow_factory() as uow:
            product = await uow.products.delete(uow.session, id=product_id)
            if not product:
                logger.warning("Delete skipped, product not found", product_id=product_id)
                return False
            await uow.commit()
            logger.info("Product deactivated successfully", product_id=product_id)
            return True

    async def get_products_by_price_range(self, query: PriceRangeQuery) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_by_price_range(uow.session, query.min_price, query.max_price)

    async def get_products_above_price(self, price: Decimal) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_above_price(uow.session, price)

    async def get_products_below_price(self, price: Decimal) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_below_price(uow.session, price)

    async def get_low_stock_products(self, threshold: Optional[int] = None) -> List[Product]:
        if threshold is None:
            threshold = settings.default_low_stock_threshold
        async with self.uow_factory() as uow:
            return await uow.products.get_low_stock_products(uow.session, threshold)

    async def get_out_of_stock_products(self) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_out_of_stock_products(uow.session)

    async def get_products_created_between(self, start_date: datetime, end_date: datetime) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_created_between(uow.session, start_date, end_date)

    async def get_recently_added_products(self, days: Optional[int] = None) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_recently_added(
                uow.session, settings.default_recent_days if days is None else days
            )

    async def get_recently_updated_products(self, days: Optional[int] = None) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_recently_updated(
                uow.session, settings.default_recent_days if days is None else days
            )

    async def search_products(self, search_term: str) -> List[Product]:
        async with self.uow_factory() as uow:
            products = await uow.products.search_by_name(uow.session, search_term)
            logger.info("Searched products by name", search_term=search_term, count=len(products))
            return products

    async def get_sorted_products(self, query: SortQuery) -> List[Product]:
        async with self.uow_factory() as uow:
            return await uow.products.get_sorted(uow.session, query.sort_by, query.ascending)

    async def bulk_update_prices(self, request: BulkPriceUpdateRequest) -> int:
        async with self.uow_factory() as uow:
            updated = await uow.products.bulk_update_prices(
                uow.session, request.percentage, request.increase, request.product_ids
            )
            affected = await uow.commit()
            logger.info("Bulk price update committed", updated=updated, affected=affected)
            return updated

    async def bulk_update_stock(self, request: BulkStockUpdateRequest) -> int:
        async with self.uow_factory() as uow:
            updated = await uow.products.bulk_update_stock(uow.session, request.product_ids, request.quantity)
            affected = await uow.commit()
            if updated < len(request.product_ids):
                logger.info(
                    "Some products were not updated",
                    requested=len(request.product_ids),
                    updated=updated,
                )
            logger.info("Bulk stock update committed", updated=updated, affected=affected)
            return updated

    async def get_statistics(self) -> ProductStatistics:
        async with self.uow_factory() as uow:
            return ProductStatistics(
                average_price=await uow.products.get_average_price(uow.session),
                total_stock_quantity=await uow.products.get_total_stock_quantity(uow.session),
                active_count=await uow.products.get_active_count(uow.session),
            )

    async def is_name_unique(self, name: str) -> bool:
        async with self.uow_factory() as uow:
            return await uow.products.is_name_unique(uow.session, name)

    async def has_sufficient_stock(self, product_id: int, requested_quantity: int) -> bool:
        async with self.uow_factory() as uow:
            return await uow.products.has_sufficient_stock(uow.session, product_id, requested_quantity)


product_service = ProductService()
