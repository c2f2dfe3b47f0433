# storefront/models.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List


class _CamelModel(BaseModel):
    # on disk and on the wire the catalog uses camelCase keys (lastUpdated, totalProducts, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductIn(_CamelModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0, allow_inf_nan=False)
    category: str = "Electronics"
    inventory: int = Field(ge=0)


class ProductUpdate(_CamelModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    category: Optional[str] = None
    inventory: Optional[int] = Field(default=None, ge=0)


class Product(ProductIn):
    # hand-added keys in the catalog file survive a rewrite
    model_config = ConfigDict(extra="allow")

    id: str
    last_updated: str


class CategorySummary(_CamelModel):
    category: str
    product_count: int
    total_inventory: int


class InventoryStats(_CamelModel):
    total_products: int
    total_inventory: int
    low_stock_products: List[Product]
    out_of_stock_products: List[Product]
    categories: List[str]
    category_breakdown: List[CategorySummary] = []


class StoreHealth(_CamelModel):
    status: str
    readable: bool
    product_count: int
    error: Optional[str] = None
