# sdk/catalog_client.py
import requests
import httpx
from typing import Optional, Dict, Any


class CatalogClient:
    def __init__(self, base_url: str = "http://localhost:8085", api_key: Optional[str] = None, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout
        self.api_key = api_key
        if api_key:
            self.session.headers.update({"x-api-key": api_key})

    # Products
    def list_products(self, q: Optional[str] = None, category: Optional[str] = None,
                      min_price: Optional[float] = None, max_price: Optional[float] = None,
                      available_only: bool = False):
        params: Dict[str, Any] = {}
        if q:
            params["q"] = q
        if category:
            params["category"] = category
        if min_price is not None:
            params["min_price"] = min_price
        if max_price is not None:
            params["max_price"] = max_price
        if available_only:
            params["available_only"] = "true"
        r = self.session.get(f"{self.base_url}/products", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, slug_or_id: str):
        r = self.session.get(f"{self.base_url}/products/{slug_or_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def create_product(self, name: str, slug: str, price: float, inventory: int,
                       description: str = "", category: str = "Electronics"):
        r = self.session.post(f"{self.base_url}/products", json={
            "name": name, "slug": slug, "description": description,
            "price": price, "category": category, "inventory": inventory,
        }, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def update_product(self, product_id: str, **fields):
        r = self.session.put(f"{self.base_url}/products/{product_id}", json=fields, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Async create, used by the concurrency demo
    async def create_product_async(self, name: str, slug: str, price: float, inventory: int,
                                   description: str = "", category: str = "Electronics"):
        headers = {"x-api-key": self.api_key} if self.api_key else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(f"{self.base_url}/products", json={
                "name": name, "slug": slug, "description": description,
                "price": price, "category": category, "inventory": inventory,
            }, headers=headers)
            return r

    # Inventory & discovery
    def inventory_stats(self):
        r = self.session.get(f"{self.base_url}/inventory/stats", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def top_products(self, limit: int = 5):
        r = self.session.get(f"{self.base_url}/inventory/top", params={"limit": limit}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def recommendations(self, limit: int = 8):
        r = self.session.get(f"{self.base_url}/recommendations", params={"limit": limit}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def health(self):
        r = self.session.get(f"{self.base_url}/health", timeout=self.timeout)
        r.raise_for_status()
        return r.json()
