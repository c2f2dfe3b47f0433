import os
from pathlib import Path

# All settings come from the environment; defaults suit a local dev run.

DATA_DIR = Path(os.getenv("STOREFRONT_DATA_DIR", "data"))
PRODUCTS_FILE = Path(os.getenv("STOREFRONT_PRODUCTS_FILE", str(DATA_DIR / "products.json")))

DEFAULT_ADMIN_API_KEY = "admin-secret-key-2024"
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "50"))
LOG_LEVEL = os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper()

API_URL = os.getenv("STOREFRONT_API_URL", "http://127.0.0.1:8085")


def admin_api_key() -> str:
    """Shared secret for write endpoints, read on every call so a changed env takes effect."""
    return os.getenv("ADMIN_API_KEY") or DEFAULT_ADMIN_API_KEY
