import asyncio
import uuid

from sdk.catalog_client import CatalogClient
from storefront import config


async def create(client, n):
    slug = f"flash-sale-{uuid.uuid4().hex[:8]}"
    r = await client.create_product_async(f"Flash sale item {n}", slug, 9.99, 10, category="Deals")
    if r.status_code == 201:
        product = r.json()
        print(f"✅ created {product['slug']} with id {product['id']}")
        return product["id"]
    print(f"❌ create {n} failed: HTTP {r.status_code} {r.text}")
    return None


async def main():
    c = CatalogClient(base_url=config.API_URL, api_key=config.admin_api_key())

    print("\n⚡ Firing concurrent creates...")
    ids = await asyncio.gather(*(create(c, n) for n in range(10)))
    ids = [i for i in ids if i is not None]

    # every create read-modify-writes the whole file; ids must still come out unique
    if len(ids) == len(set(ids)):
        print(f"\n👍 {len(ids)} products, all ids distinct: {sorted(ids, key=int)}")
    else:
        print(f"\n💥 duplicate ids handed out: {sorted(ids, key=int)}")

    print("\n📊 Stats:", c.inventory_stats()["totalProducts"], "products")


if __name__ == "__main__":
    asyncio.run(main())
