from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ProductBase(SQLModel):
    name: str = Field(min_length=1, max_length=200, index=True)
    price: Decimal = Field(max_digits=18, decimal_places=2, index=True)
    stock_quantity: int = Field(index=True)


class Product(ProductBase, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Naive UTC storage on every backend
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False, sa_type=DateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    is_active: bool = Field(default=True, nullable=False)


class ProductCreate(ProductBase):
    pass


class ProductRead(ProductBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime]
    is_active: bool


class ProductUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(default=None, max_digits=18, decimal_places=2)
    stock_quantity: Optional[int] = None
