# Import all models for easy access
from .enums import ProductSortField
from .product import Product, ProductCreate, ProductRead, ProductUpdate

__all__ = [
    "Product", "ProductCreate", "ProductRead", "ProductUpdate",
    "ProductSortField",
]
