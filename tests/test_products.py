import pytest

from errors import NotFound
from products import CatalogStore, ProductCreate, ProductFilters, ProductUpdate

SEED = [
    {"id": 1, "name": "Solitaire Ring", "description": "Brilliant cut", "category": "Rings",
     "metal": "Gold", "price": 85000},
    {"id": 2, "name": "Emerald Studs", "description": "Pair of green studs", "category": "Earrings",
     "metal": "White Gold", "price": 40000, "designerId": 2},
    {"id": 3, "name": "Anklet", "description": "Silver chain with bells", "category": "Anklets",
     "metal": "Silver", "price": 3000, "designerId": 2},
    {"id": 4, "name": "Band", "description": "Plain band", "category": "Rings",
     "metal": "gold", "price": 15000},
]


@pytest.fixture
def catalog():
    return CatalogStore(SEED)


async def test_list_without_filters_returns_everything(catalog):
    assert [p.id for p in await catalog.list()] == [1, 2, 3, 4]


@pytest.mark.parametrize("filters, expected", [
    (ProductFilters(category="rings"), [1, 4]),
    (ProductFilters(metal="GOLD"), [1, 4]),
    (ProductFilters(min_price=15000, max_price=40000), [2, 4]),
    (ProductFilters(search="GREEN"), [2]),
    (ProductFilters(search="anklets"), [3]),
    (ProductFilters(sort_by="price-low"), [3, 4, 2, 1]),
    (ProductFilters(sort_by="price-high"), [1, 2, 4, 3]),
    (ProductFilters(sort_by="name"), [3, 4, 2, 1]),
    (ProductFilters(sort_by="popularity"), [1, 2, 3, 4]),
    (ProductFilters(category="Rings", sort_by="price-low"), [4, 1]),
])
async def test_list_filters_and_sorting(catalog, filters, expected):
    assert [p.id for p in await catalog.list(filters)] == expected


async def test_unknown_filter_keys_are_ignored(catalog):
    filters = ProductFilters.model_validate({"colour": "red", "category": "Anklets"})
    assert [p.id for p in await catalog.list(filters)] == [3]


async def test_list_returns_fresh_copies(catalog):
    first = await catalog.list()
    first[0].name = "Changed"
    first.pop()

    again = await catalog.list()
    assert again[0].name == "Solitaire Ring"
    assert len(again) == 4


async def test_create_assigns_next_id_and_timestamp(catalog):
    product = await catalog.create(ProductCreate(name="Pendant", category="Pendants", price=9000))

    assert product.id == 5
    assert product.created_at is not None
    assert (await catalog.get_by_id(5)).name == "Pendant"


async def test_create_on_empty_catalog_starts_at_one():
    product = await CatalogStore().create(ProductCreate(name="Pendant", category="Pendants", price=9000))
    assert product.id == 1


async def test_update_merges_and_keeps_id(catalog):
    updated = await catalog.update(2, ProductUpdate(price=42000, stock=7))

    assert updated.id == 2
    assert updated.price == 42000
    assert updated.stock == 7
    assert updated.name == "Emerald Studs"
    assert updated.updated_at is not None

    with pytest.raises(NotFound):
        await catalog.update(99, ProductUpdate(price=1))


async def test_delete_then_get_fails(catalog):
    removed = await catalog.delete(3)

    assert removed.name == "Anklet"
    with pytest.raises(NotFound):
        await catalog.get_by_id(3)
    with pytest.raises(NotFound):
        await catalog.delete(3)


async def test_distinct_values_keep_first_seen_order(catalog):
    assert await catalog.categories() == ["Rings", "Earrings", "Anklets"]
    assert await catalog.metal_types() == ["Gold", "White Gold", "Silver", "gold"]


async def test_price_range(catalog):
    price_range = await catalog.price_range()
    assert (price_range.min, price_range.max) == (3000, 85000)

    with pytest.raises(NotFound):
        await CatalogStore().price_range()


async def test_by_designer_and_featured(catalog, monkeypatch):
    assert [p.id for p in await catalog.by_designer_id(2)] == [2, 3]
    assert await catalog.by_designer_id(9) == []

    from settings import settings
    monkeypatch.setattr(settings, "FEATURED_COUNT", 2)
    assert [p.id for p in await catalog.featured()] == [1, 2]
