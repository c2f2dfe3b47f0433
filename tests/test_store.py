# tests/test_store.py
import asyncio
import json
import random

import pytest

from conftest import MOCK_PRODUCTS, make_product
from storefront.core import CatalogStore
from storefront.database import InMemoryStorage, JsonFileStorage
from storefront.models import ProductIn, ProductUpdate

run = asyncio.run


def keyboard(**overrides):
    fields = dict(name="Keyboard", slug="keyboard", description="Mechanical keyboard",
                  price=149.99, category="Electronics", inventory=30)
    fields.update(overrides)
    return ProductIn(**fields)


class BrokenWriteStorage(InMemoryStorage):
    def save(self, records):
        raise OSError("disk full")


# --- reads ---

def test_list_all_returns_stored_products(store):
    products = run(store.list_all())
    assert [p.model_dump(by_alias=True) for p in products] == MOCK_PRODUCTS


def test_missing_file_is_empty_catalog(tmp_path):
    store = CatalogStore(JsonFileStorage(tmp_path / "data" / "products.json"))
    assert run(store.list_all()) == []


def test_corrupt_file_degrades_to_empty(tmp_path):
    path = tmp_path / "products.json"
    path.write_text("invalid json")
    store = CatalogStore(JsonFileStorage(path))
    assert run(store.list_all()) == []


def test_wrong_structure_degrades_to_empty(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps({"products": MOCK_PRODUCTS}))
    store = CatalogStore(JsonFileStorage(path))
    assert run(store.list_all()) == []


def test_find_by_slug(store):
    assert run(store.find_by_slug("laptop")).id == "1"
    assert run(store.find_by_slug("nonexistent")) is None


def test_find_by_id(store):
    assert run(store.find_by_id("2")).slug == "mouse"
    assert run(store.find_by_id("999")) is None


def test_lookups_on_empty_catalog_return_none():
    store = CatalogStore(InMemoryStorage())
    assert run(store.find_by_slug("laptop")) is None
    assert run(store.find_by_id("1")) is None


# --- create ---

def test_create_on_empty_catalog_assigns_id_1():
    store = CatalogStore(InMemoryStorage())
    product = run(store.create(keyboard()))
    assert product.id == "1"


def test_create_increments_past_highest_id(store, storage):
    product = run(store.create(keyboard()))
    assert product.id == "3"
    assert product.name == "Keyboard"
    assert product.last_updated
    assert storage.saves == 1


def test_create_skips_non_numeric_ids():
    storage = InMemoryStorage([make_product(id="abc", slug="a"), make_product(id="7", slug="b")])
    store = CatalogStore(storage)
    assert run(store.create(keyboard())).id == "8"
    assert run(store.create(keyboard(slug="keyboard-2"))).id == "9"


def test_create_does_not_check_slug_uniqueness(store):
    product = run(store.create(keyboard(slug="laptop")))
    assert product.id == "3"
    assert run(store.find_by_slug("laptop")).id == "1"


def test_created_product_round_trips_through_file(tmp_path):
    path = tmp_path / "data" / "products.json"
    store = CatalogStore(JsonFileStorage(path))
    created = run(store.create(keyboard()))

    assert created in run(store.list_all())
    on_disk = json.loads(path.read_text())
    assert on_disk[0]["id"] == "1"
    assert on_disk[0]["lastUpdated"] == created.last_updated


def test_concurrent_creates_get_distinct_ids(store):
    async def many():
        return await asyncio.gather(*(store.create(keyboard(slug=f"k{i}")) for i in range(5)))

    ids = [p.id for p in run(many())]
    assert sorted(ids, key=int) == ["3", "4", "5", "6", "7"]


def test_write_failure_propagates():
    store = CatalogStore(BrokenWriteStorage(MOCK_PRODUCTS))
    with pytest.raises(OSError):
        run(store.create(keyboard()))


# --- update ---

def test_update_changes_given_fields_only(store):
    updated = run(store.update("1", ProductUpdate(price=999.99, inventory=25)))
    assert updated.price == 999.99
    assert updated.inventory == 25
    assert updated.id == "1"
    assert updated.name == "Laptop"
    assert updated.slug == "laptop"


def test_update_refreshes_last_updated(store):
    first = run(store.update("1", {"price": 1000}))
    second = run(store.update("1", {"price": 1001}))
    assert first.last_updated > "2024-01-01T00:00:00Z"
    assert second.last_updated > first.last_updated


def test_update_ignores_id_in_payload(store):
    updated = run(store.update("1", {"id": "42", "name": "Renamed"}))
    assert updated.id == "1"
    assert run(store.find_by_id("42")) is None
    assert run(store.find_by_id("1")).name == "Renamed"


def test_update_unknown_id_does_not_write(store, storage):
    assert run(store.update("999", {"price": 50})) is None
    assert storage.saves == 0


def test_update_persists(store):
    run(store.update("2", ProductUpdate(inventory=0)))
    assert run(store.find_by_id("2")).inventory == 0


# --- aggregates ---

def test_inventory_stats_scenario():
    storage = InMemoryStorage([make_product(id="1", inventory=10), make_product(id="2", slug="m", inventory=100)])
    stats = run(CatalogStore(storage).inventory_stats())
    assert stats.total_products == 2
    assert stats.total_inventory == 110
    assert [p.id for p in stats.low_stock_products] == ["1"]
    assert stats.out_of_stock_products == []


def test_out_of_stock_is_subset_of_low_stock():
    storage = InMemoryStorage([
        make_product(id="1", inventory=0),
        make_product(id="2", inventory=50),
        make_product(id="3", inventory=49),
    ])
    stats = run(CatalogStore(storage).inventory_stats())
    low_ids = {p.id for p in stats.low_stock_products}
    assert [p.id for p in stats.out_of_stock_products] == ["1"]
    assert low_ids == {"1", "3"}
    assert {p.id for p in stats.out_of_stock_products} <= low_ids


def test_categories_are_distinct():
    storage = InMemoryStorage([
        make_product(id="1", category="Electronics"),
        make_product(id="2", category="Accessories"),
        make_product(id="3", category="Electronics"),
    ])
    stats = run(CatalogStore(storage).inventory_stats())
    assert sorted(stats.categories) == ["Accessories", "Electronics"]


def test_low_stock_threshold_is_configurable(storage):
    stats = run(CatalogStore(storage, low_stock_threshold=60).inventory_stats())
    assert [p.id for p in stats.low_stock_products] == ["1"]


def test_search_combines_filters():
    storage = InMemoryStorage([
        make_product(id="1", name="Gaming Laptop", price=1500, category="Electronics", inventory=3),
        make_product(id="2", name="Laptop Sleeve", price=25, category="Accessories", inventory=0),
        make_product(id="3", name="Desk Lamp", description="fits next to any laptop", price=40,
                     category="Home", inventory=8),
    ])
    store = CatalogStore(storage)
    assert [p.id for p in run(store.search(q="LAPTOP"))] == ["1", "2", "3"]
    assert [p.id for p in run(store.search(q="laptop", max_price=100))] == ["2", "3"]
    assert [p.id for p in run(store.search(q="laptop", max_price=100, available_only=True))] == ["3"]
    assert [p.id for p in run(store.search(category="Accessories"))] == ["2"]
    assert len(run(store.search(category="all"))) == 3
    assert [p.id for p in run(store.search(min_price=40, max_price=40))] == ["3"]


def test_top_by_stock_value():
    storage = InMemoryStorage([
        make_product(id="1", price=10, inventory=10),
        make_product(id="2", price=1, inventory=500),
        make_product(id="3", price=100, inventory=0),
    ])
    top = run(CatalogStore(storage).top_by_stock_value(limit=2))
    assert [p.id for p in top] == ["2", "1"]


def test_recommendations_sample_without_repeats(store):
    picks = run(store.recommendations(limit=8, rng=random.Random(7)))
    assert sorted(p.id for p in picks) == ["1", "2"]
    assert len(run(store.recommendations(limit=1))) == 1


# --- health ---

def test_health_distinguishes_empty_from_unreadable(tmp_path):
    path = tmp_path / "products.json"
    store = CatalogStore(JsonFileStorage(path))
    health = run(store.health())
    assert health.readable and health.status == "ok" and health.product_count == 0

    path.write_text("{not json")
    health = run(store.health())
    assert not health.readable
    assert health.status == "degraded"
    assert health.error
    assert run(store.list_all()) == []


# --- unreadable catalogs are never overwritten ---

def _catalog_with_null_price(tmp_path):
    path = tmp_path / "products.json"
    records = [dict(MOCK_PRODUCTS[0]), dict(MOCK_PRODUCTS[1], price=None)]
    path.write_text(json.dumps(records, indent=2))
    return path, path.read_text()


def test_create_leaves_unreadable_catalog_intact(tmp_path):
    path, before = _catalog_with_null_price(tmp_path)
    store = CatalogStore(JsonFileStorage(path))
    assert run(store.list_all()) == []

    with pytest.raises(ValueError):
        run(store.create(keyboard()))
    assert path.read_text() == before
    assert [r["id"] for r in json.loads(path.read_text())] == ["1", "2"]


def test_update_leaves_unreadable_catalog_intact(tmp_path):
    path, before = _catalog_with_null_price(tmp_path)
    store = CatalogStore(JsonFileStorage(path))
    with pytest.raises(ValueError):
        run(store.update("1", {"price": 5}))
    assert path.read_text() == before


def test_create_only_counts_plain_digit_ids():
    storage = InMemoryStorage([
        make_product(id="1_000", slug="a"),
        make_product(id=" 7 ", slug="b"),
        make_product(id="+9", slug="c"),
        make_product(id="3", slug="d"),
    ])
    assert run(CatalogStore(storage).create(keyboard())).id == "4"


def test_category_breakdown():
    storage = InMemoryStorage([
        make_product(id="1", category="Electronics", inventory=5),
        make_product(id="2", category="Audio", inventory=0),
        make_product(id="3", category="Electronics", inventory=20),
    ])
    stats = run(CatalogStore(storage).inventory_stats())
    rows = {(c.category, c.product_count, c.total_inventory) for c in stats.category_breakdown}
    assert rows == {("Electronics", 2, 25), ("Audio", 1, 0)}
