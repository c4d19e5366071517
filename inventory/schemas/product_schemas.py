from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from decimal import Decimal


class PriceRangeQuery(BaseModel):
    min_price: Decimal = Field(ge=0)
    max_price: Decimal = Field(ge=0)

    @model_validator(mode="after")
    def check_bounds(self) -> "PriceRangeQuery":
        if self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class SortQuery(BaseModel):
    sort_by: str = "id"
    ascending: bool = True


class BulkPriceUpdateRequest(BaseModel):
    percentage: Decimal = Field(ge=0)
    increase: bool = True
    product_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_decrease(self) -> "BulkPriceUpdateRequest":
        # A cut of more than 100 percent would make prices negative
        if not self.increase and self.percentage > 100:
            raise ValueError("percentage must be at most 100 for a decrease")
        return self


class BulkStockUpdateRequest(BaseModel):
    product_ids: List[int]
    quantity: int = Field(ge=0)

    @field_validator("product_ids")
    @classmethod
    def dedupe_ids(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))


class ProductStatistics(BaseModel):
    average_price: Decimal
    total_stock_quantity: int
    active_count: int
