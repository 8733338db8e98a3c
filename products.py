# products.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import Field

from db import next_id, simulate_latency
from errors import NotFound
from models import Product, Schema, utcnow
from settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["Products"])

SORT_KEYS = {
    "price-low": (lambda p: p.price, False),
    "price-high": (lambda p: p.price, True),
    "name": (lambda p: p.name.lower(), False),
}


# --- Pydantic Schemas for Data Validation ---

class ProductFilters(Schema):
    """Catalog query. Every combination is accepted; unknown keys and sort values are ignored."""
    category: Optional[str] = None
    metal: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None


class ProductCreate(Schema):
    name: str
    description: str = ""
    category: str
    metal: str = ""
    gemstones: List[str] = Field(default_factory=list)
    price: float = Field(..., ge=0)
    original_price: Optional[float] = None
    stock: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    designer_id: Optional[int] = None


class ProductUpdate(Schema):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    metal: Optional[str] = None
    gemstones: Optional[List[str]] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = None
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    rating: Optional[float] = None
    designer_id: Optional[int] = None


class PriceRange(Schema):
    min: float
    max: float


# --- Store ---

class CatalogStore:
    """Purchasable products, held in memory and seeded from static data."""

    def __init__(self, records: Iterable[Dict[str, Any]] = ()):
        self.reset(records)

    def reset(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self._products: List[Product] = [Product.model_validate(r) for r in records]

    def _index_of(self, product_id: int) -> int:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        raise NotFound(f"Product {product_id} not found")

    async def list(self, filters: Optional[ProductFilters] = None) -> List[Product]:
        await simulate_latency(300)
        filters = filters or ProductFilters()
        result = [p.model_copy(deep=True) for p in self._products]

        if filters.category:
            category = filters.category.lower()
            result = [p for p in result if p.category.lower() == category]

        if filters.metal:
            metal = filters.metal.lower()
            result = [p for p in result if p.metal.lower() == metal]

        if filters.min_price is not None:
            result = [p for p in result if p.price >= filters.min_price]

        if filters.max_price is not None:
            result = [p for p in result if p.price <= filters.max_price]

        if filters.search:
            term = filters.search.lower()
            result = [
                p for p in result
                if term in p.name.lower() or term in p.description.lower() or term in p.category.lower()
            ]

        if filters.sort_by in SORT_KEYS:
            key, reverse = SORT_KEYS[filters.sort_by]
            result.sort(key=key, reverse=reverse)

        return result

    async def get_by_id(self, product_id: int) -> Product:
        await simulate_latency(200)
        return self._products[self._index_of(product_id)].model_copy(deep=True)

    async def featured(self) -> List[Product]:
        await simulate_latency(250)
        return [p.model_copy(deep=True) for p in self._products[:settings.FEATURED_COUNT]]

    async def categories(self) -> List[str]:
        await simulate_latency(200)
        return list(dict.fromkeys(p.category for p in self._products))

    async def metal_types(self) -> List[str]:
        await simulate_latency(200)
        return list(dict.fromkeys(p.metal for p in self._products))

    async def price_range(self) -> PriceRange:
        await simulate_latency(200)
        if not self._products:
            raise NotFound("No products available to compute a price range")
        prices = [p.price for p in self._products]
        return PriceRange(min=min(prices), max=max(prices))

    async def by_designer_id(self, designer_id: int) -> List[Product]:
        await simulate_latency(250)
        return [p.model_copy(deep=True) for p in self._products if p.designer_id == designer_id]

    async def create(self, data: ProductCreate) -> Product:
        await simulate_latency(400)
        product = Product(id=next_id(self._products), **data.model_dump(), created_at=utcnow())
        self._products.append(product)
        logger.info(f"Created product {product.id} ({product.name}).")
        return product.model_copy(deep=True)

    async def update(self, product_id: int, patch: ProductUpdate) -> Product:
        await simulate_latency(350)
        index = self._index_of(product_id)
        current = self._products[index]

        changes = patch.model_dump(exclude_unset=True)
        changes.pop("id", None)
        updated = Product.model_validate(
            {**current.model_dump(), **changes, "id": current.id, "updated_at": utcnow()}
        )
        self._products[index] = updated
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return updated.model_copy(deep=True)

    async def delete(self, product_id: int) -> Product:
        await simulate_latency(300)
        removed = self._products.pop(self._index_of(product_id))
        logger.info(f"Deleted product {product_id}.")
        return removed


def get_catalog(request: Request) -> CatalogStore:
    return request.app.state.stores.catalog


# --- API Endpoints ---

@router.get("/", response_model=List[Product], summary="List and filter the catalog")
async def list_products(
    category: Optional[str] = None,
    metal: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    catalog: CatalogStore = Depends(get_catalog),
):
    filters = ProductFilters(
        category=category,
        metal=metal,
        min_price=min_price,
        max_price=max_price,
        search=search,
        sort_by=sort_by,
    )
    return await catalog.list(filters)


@router.get("/featured", response_model=List[Product])
async def featured_products(catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.featured()


@router.get("/categories", response_model=List[str])
async def list_categories(catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.categories()


@router.get("/metals", response_model=List[str])
async def list_metal_types(catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.metal_types()


@router.get("/price-range", response_model=PriceRange)
async def get_price_range(catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.price_range()


@router.get("/by-designer/{designer_id}", response_model=List[Product])
async def products_by_designer(designer_id: int, catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.by_designer_id(designer_id)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: int, catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.get_by_id(product_id)


@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.create(payload)


@router.patch("/{product_id}", response_model=Product)
async def update_product(product_id: int, payload: ProductUpdate, catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.update(product_id, payload)


@router.delete("/{product_id}", response_model=Product)
async def delete_product(product_id: int, catalog: CatalogStore = Depends(get_catalog)):
    return await catalog.delete(product_id)
