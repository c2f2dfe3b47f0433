#!/usr/bin/env python
from sdk.catalog_client import CatalogClient
from storefront import config

SEED = [
    ("Laptop", "laptop", 1299.99, 50, "High performance laptop", "Electronics"),
    ("Wireless Mouse", "wireless-mouse", 29.99, 100, "Ergonomic wireless mouse", "Accessories"),
    ("USB-C Hub", "usb-c-hub", 49.99, 12, "7-in-1 hub", "Accessories"),
    ("Noise Cancelling Headphones", "nc-headphones", 249.0, 0, "Over-ear, 30h battery", "Audio"),
]


def main():
    c = CatalogClient(base_url=config.API_URL, api_key=config.admin_api_key())

    # -----------------------------
    # Seed the catalog (skips slugs that already exist)
    # -----------------------------
    print("Seeding products...")
    existing = {p["slug"] for p in c.list_products()}
    for name, slug, price, inventory, description, category in SEED:
        if slug in existing:
            continue
        print(c.create_product(name, slug, price, inventory, description, category))

    # -----------------------------
    # Browse
    # -----------------------------
    print("\nAll products:")
    print(c.list_products())

    print("\nAccessories under $40:")
    print(c.list_products(category="Accessories", max_price=40))

    print("\nLookup by slug, then by id:")
    laptop = c.get_product("laptop")
    print(laptop)
    print(c.get_product(laptop["id"]))

    # -----------------------------
    # Restock and dashboard
    # -----------------------------
    print("\nRestocking the hub...")
    hub = c.get_product("usb-c-hub")
    print(c.update_product(hub["id"], inventory=hub["inventory"] + 40))

    print("\nInventory stats:")
    print(c.inventory_stats())

    print("\nTop products by stock value:")
    print(c.top_products())

    print("\nRecommendations:")
    print(c.recommendations(limit=3))

    print("\nHealth:")
    print(c.health())


if __name__ == "__main__":
    main()
