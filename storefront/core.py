import asyncio
import logging
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from .database import CatalogError, ProductStorage, Record
from .models import CategorySummary, InventoryStats, Product, ProductIn, ProductUpdate, StoreHealth

# The catalog store: all reads and writes of the product collection go through here.

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 50

# what a read can fail with before we fall back to an empty catalog
_READ_ERRORS = (OSError, ValueError, CatalogError)

_NUMERIC_ID = re.compile(r"[0-9]+")


# ---------------------------
# Helpers
# ---------------------------
def _format_timestamp(moment: datetime) -> str:
    # same shape as JavaScript's toISOString(): millisecond precision, trailing Z
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _stamp_after(previous: Optional[str] = None) -> str:
    """Current time, nudged forward if needed so it sorts strictly after ``previous``."""
    now = datetime.now(timezone.utc)
    before = _parse_timestamp(previous) if previous else None
    if before is not None and now <= before + timedelta(microseconds=999):
        now = before + timedelta(milliseconds=1)
    return _format_timestamp(now)


def _next_id(products: List[Product]) -> str:
    highest = 0
    for p in products:
        if _NUMERIC_ID.fullmatch(p.id):
            highest = max(highest, int(p.id))
        else:
            logger.warning("ignoring non-numeric product id %r when assigning ids", p.id)
    return str(highest + 1)


def _make_product_dict(product_id: str, payload: ProductIn, last_updated: str) -> Record:
    return {
        "id": product_id,
        **payload.model_dump(by_alias=True),
        "lastUpdated": last_updated,
    }


def _update_fields(updates: Union[ProductUpdate, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(updates, ProductUpdate):
        return updates.model_dump(by_alias=True, exclude_unset=True)
    fields = dict(updates)
    for key in ("id", "lastUpdated", "last_updated"):
        fields.pop(key, None)
    return fields


# ---------------------------
# Store
# ---------------------------
class CatalogStore:
    """Product catalog over an injected storage backend.

    Every mutation is a full load followed by a full save. Mutations within
    one process are serialized by a lock, so concurrent creates never hand
    out the same id; separate processes sharing one file can still race.
    Reads degrade to an empty catalog when the data is unreadable, but
    mutations raise instead, so a bad file is never overwritten.
    """

    def __init__(self, storage: ProductStorage, low_stock_threshold: int = LOW_STOCK_THRESHOLD):
        self.storage = storage
        self.low_stock_threshold = low_stock_threshold
        self._lock = asyncio.Lock()

    def _read(self) -> List[Product]:
        return [Product.model_validate(r) for r in self.storage.load()]

    def _write(self, products: List[Product]) -> None:
        self.storage.save([p.model_dump(by_alias=True) for p in products])

    # Reads
    async def list_all(self) -> List[Product]:
        try:
            return self._read()
        except _READ_ERRORS:
            logger.exception("Error reading products; serving an empty catalog")
            return []

    async def find_by_slug(self, slug: str) -> Optional[Product]:
        for p in await self.list_all():
            if p.slug == slug:
                return p
        return None

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        for p in await self.list_all():
            if p.id == product_id:
                return p
        return None

    async def search(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        available_only: bool = False,
    ) -> List[Product]:
        term = (q or "").strip().lower()
        out = []
        for p in await self.list_all():
            if term and term not in p.name.lower() and term not in p.description.lower():
                continue
            if category and category != "all" and p.category != category:
                continue
            if min_price is not None and p.price < min_price:
                continue
            if max_price is not None and p.price > max_price:
                continue
            if available_only and p.inventory <= 0:
                continue
            out.append(p)
        return out

    # Writes
    async def create(self, payload: ProductIn) -> Product:
        async with self._lock:
            products = self._read()
            product = Product.model_validate(
                _make_product_dict(_next_id(products), payload, _stamp_after())
            )
            products.append(product)
            self._write(products)
        logger.info("created product %s (%s)", product.id, product.slug)
        return product

    async def update(self, product_id: str, updates: Union[ProductUpdate, Dict[str, Any]]) -> Optional[Product]:
        async with self._lock:
            products = self._read()
            for index, existing in enumerate(products):
                if existing.id == product_id:
                    break
            else:
                return None

            merged = existing.model_dump(by_alias=True)
            merged.update(_update_fields(updates))
            merged["id"] = existing.id
            merged["lastUpdated"] = _stamp_after(existing.last_updated)
            products[index] = Product.model_validate(merged)
            self._write(products)
        logger.info("updated product %s", product_id)
        return products[index]

    # Aggregates
    async def inventory_stats(self) -> InventoryStats:
        products = await self.list_all()
        breakdown: Dict[str, CategorySummary] = {}
        for p in products:
            summary = breakdown.setdefault(
                p.category, CategorySummary(category=p.category, product_count=0, total_inventory=0)
            )
            summary.product_count += 1
            summary.total_inventory += p.inventory
        return InventoryStats(
            total_products=len(products),
            total_inventory=sum(p.inventory for p in products),
            low_stock_products=[p for p in products if p.inventory < self.low_stock_threshold],
            out_of_stock_products=[p for p in products if p.inventory == 0],
            categories=list(dict.fromkeys(p.category for p in products)),
            category_breakdown=list(breakdown.values()),
        )

    async def top_by_stock_value(self, limit: int = 5) -> List[Product]:
        products = await self.list_all()
        return sorted(products, key=lambda p: p.price * p.inventory, reverse=True)[:limit]

    async def recommendations(self, limit: int = 8, rng: Optional[random.Random] = None) -> List[Product]:
        products = await self.list_all()
        rng = rng or random.Random()
        return rng.sample(products, min(limit, len(products)))

    async def health(self) -> StoreHealth:
        """Tell an empty catalog apart from an unreadable one; ``list_all`` cannot."""
        try:
            products = self._read()
        except _READ_ERRORS as e:
            return StoreHealth(status="degraded", readable=False, product_count=0, error=str(e))
        return StoreHealth(status="ok", readable=True, product_count=len(products))
