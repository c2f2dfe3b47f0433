# storefront/main.py
import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import config
from .auth import require_admin_key
from .core import CatalogStore
from .database import JsonFileStorage
from .models import ProductIn, ProductUpdate

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("storefront")

app = FastAPI(title="storefront catalog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CACHE_CONTROL = "public, max-age=60, stale-while-revalidate=300"
_STARTED_AT = time.monotonic()

# ---------------------------
# Store wiring
# ---------------------------
_store: Optional[CatalogStore] = None


def get_store() -> CatalogStore:
    global _store
    if _store is None:
        logger.info("using catalog file %s", config.PRODUCTS_FILE)
        _store = CatalogStore(JsonFileStorage(config.PRODUCTS_FILE), low_stock_threshold=config.LOW_STOCK_THRESHOLD)
    return _store


# ---------------------------
# Helpers
# ---------------------------
def _server_error(action: str, exc: Exception) -> JSONResponse:
    logger.exception("Error trying to %s", action)
    return JSONResponse(status_code=500, content={"detail": f"Failed to {action}", "error": str(exc)})


def _as_float(field: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"{field} must be a number")
    if not math.isfinite(number):
        raise HTTPException(status_code=400, detail=f"{field} must be a finite number")
    return number


def _as_int(field: str, value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise HTTPException(status_code=400, detail=f"{field} must be an integer")


def _validation_detail(e: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())


# ---------------------------
# Product endpoints
# ---------------------------
@app.get("/products")
async def list_products(
    response: Response,
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    available_only: bool = False,
    store: CatalogStore = Depends(get_store),
):
    try:
        if q or category or min_price is not None or max_price is not None or available_only:
            products = await store.search(q, category, min_price, max_price, available_only)
        else:
            products = await store.list_all()
    except Exception as e:
        return _server_error("fetch products", e)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return products


@app.get("/products/{param}")
async def get_product(param: str, response: Response, store: CatalogStore = Depends(get_store)):
    try:
        product = await store.find_by_slug(param)
        if product is None:
            product = await store.find_by_id(param)
    except Exception as e:
        return _server_error("fetch product", e)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    response.headers["Cache-Control"] = CACHE_CONTROL
    return product


@app.post("/products", status_code=201, dependencies=[Depends(require_admin_key)])
async def create_product(payload: Dict[str, Any] = Body(...), store: CatalogStore = Depends(get_store)):
    if not payload.get("name") or not payload.get("slug") \
            or payload.get("price") is None or payload.get("inventory") is None:
        raise HTTPException(status_code=400, detail="Missing required fields: name, slug, price, inventory")

    try:
        product_in = ProductIn(
            name=payload["name"],
            slug=payload["slug"],
            description=payload.get("description") or "",
            price=_as_float("price", payload["price"]),
            category=payload.get("category") or "Electronics",
            inventory=_as_int("inventory", payload["inventory"]),
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=_validation_detail(e))

    try:
        return await store.create(product_in)
    except Exception as e:
        return _server_error("create product", e)


@app.put("/products/{product_id}", dependencies=[Depends(require_admin_key)])
async def update_product(product_id: str, payload: Dict[str, Any] = Body(...), store: CatalogStore = Depends(get_store)):
    try:
        existing = await store.find_by_id(product_id)
    except Exception as e:
        return _server_error("update product", e)
    if existing is None:
        raise HTTPException(status_code=404, detail="Product not found")

    # blank name/slug/category are ignored rather than wiping the field
    fields: Dict[str, Any] = {}
    for key in ("name", "slug", "category"):
        if payload.get(key):
            fields[key] = payload[key]
    if payload.get("description") is not None:
        fields["description"] = payload["description"]
    if payload.get("price") is not None:
        fields["price"] = _as_float("price", payload["price"])
    if payload.get("inventory") is not None:
        fields["inventory"] = _as_int("inventory", payload["inventory"])

    try:
        updates = ProductUpdate(**fields)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=_validation_detail(e))

    try:
        updated = await store.update(product_id, updates)
    except Exception as e:
        return _server_error("update product", e)
    if updated is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return updated


# ---------------------------
# Inventory & discovery
# ---------------------------
@app.get("/inventory/stats")
async def inventory_stats(store: CatalogStore = Depends(get_store)):
    try:
        return await store.inventory_stats()
    except Exception as e:
        return _server_error("compute inventory stats", e)


@app.get("/inventory/top")
async def top_products(limit: int = Query(5, ge=1, le=100), store: CatalogStore = Depends(get_store)):
    return await store.top_by_stock_value(limit)


@app.get("/recommendations")
async def recommendations(limit: int = Query(8, ge=1, le=100), store: CatalogStore = Depends(get_store)):
    return await store.recommendations(limit)


# ---------------------------
# Health
# ---------------------------
@app.get("/health")
async def health(store: CatalogStore = Depends(get_store)):
    catalog = await store.health()
    return {
        "status": "healthy" if catalog.readable else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": time.monotonic() - _STARTED_AT,
        "catalog": catalog.model_dump(by_alias=True),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8085)
