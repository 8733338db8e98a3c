# designers.py
import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import Field

from db import next_id, simulate_latency
from errors import NotFound
from models import Designer, PortfolioItem, Product, Schema, utcnow
from products import CatalogStore, ProductCreate

# --- Module-level Configuration ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/designers", tags=["Designers"])


# ===================================================================
# Pydantic Schemas for API Contracts
# ===================================================================

class DesignerFilters(Schema):
    specialty: Optional[str] = None
    location: Optional[str] = None
    min_rating: Optional[float] = None


class DesignerCreate(Schema):
    name: str
    email: Optional[str] = None
    bio: str = ""
    specialties: List[str] = Field(default_factory=list)
    location: str = ""
    avatar: Optional[str] = None


class DesignerUpdate(Schema):
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    specialties: Optional[List[str]] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    rating: Optional[float] = None
    completed_orders: Optional[int] = None
    active_orders: Optional[int] = None


class PortfolioItemCreate(Schema):
    image: Optional[str] = None
    title: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    metal: str = ""
    gemstones: List[str] = Field(default_factory=list)
    completion_time: Optional[str] = None


class JewelryUpload(Schema):
    """A new piece from a designer: goes into their portfolio and on sale in the shop."""
    name: str
    description: str = ""
    category: str
    metal: str = ""
    gemstones: List[str] = Field(default_factory=list)
    price: float = Field(..., ge=0)
    stock: int = Field(1, ge=0)
    images: List[str] = Field(default_factory=list)
    completion_time: Optional[str] = None


class UploadResult(Schema):
    designer: Designer
    product: Product


# ===================================================================
# Store
# ===================================================================

class DesignerStore:
    """Designer profiles and portfolios. Uploads also publish to the catalog."""

    def __init__(self, catalog: CatalogStore, records: Iterable[Dict[str, Any]] = ()):
        self._catalog = catalog
        self.reset(records)

    def reset(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self._designers: List[Designer] = [Designer.model_validate(r) for r in records]

    def _index_of(self, designer_id: int) -> int:
        for index, designer in enumerate(self._designers):
            if designer.id == designer_id:
                return index
        raise NotFound(f"Designer {designer_id} not found")

    async def list(self, filters: Optional[DesignerFilters] = None) -> List[Designer]:
        await simulate_latency(300)
        filters = filters or DesignerFilters()
        result = [d.model_copy(deep=True) for d in self._designers]

        if filters.specialty:
            term = filters.specialty.lower()
            result = [d for d in result if any(term in s.lower() for s in d.specialties)]
        if filters.location:
            term = filters.location.lower()
            result = [d for d in result if term in d.location.lower()]
        if filters.min_rating is not None:
            result = [d for d in result if d.rating >= filters.min_rating]

        return result

    async def get_by_id(self, designer_id: int) -> Designer:
        await simulate_latency(250)
        return self._designers[self._index_of(designer_id)].model_copy(deep=True)

    async def create(self, data: DesignerCreate) -> Designer:
        await simulate_latency(400)
        designer = Designer(id=next_id(self._designers), **data.model_dump(), created_at=utcnow())
        self._designers.append(designer)
        logger.info(f"Created designer {designer.id} ({designer.name}).")
        return designer.model_copy(deep=True)

    async def update(self, designer_id: int, patch: DesignerUpdate) -> Designer:
        await simulate_latency(350)
        index = self._index_of(designer_id)
        changes = patch.model_dump(exclude_unset=True)
        updated = Designer.model_validate(
            {**self._designers[index].model_dump(), **changes, "id": designer_id, "updated_at": utcnow()}
        )
        self._designers[index] = updated
        return updated.model_copy(deep=True)

    async def delete(self, designer_id: int) -> Designer:
        await simulate_latency(300)
        removed = self._designers.pop(self._index_of(designer_id))
        logger.info(f"Deleted designer {designer_id}.")
        return removed

    async def add_portfolio_item(self, designer_id: int, item: PortfolioItemCreate) -> Designer:
        await simulate_latency(300)
        designer = self._designers[self._index_of(designer_id)]
        entry = PortfolioItem(id=next_id(designer.portfolio), **item.model_dump(), created_at=utcnow())
        designer.portfolio.append(entry)
        designer.updated_at = utcnow()
        logger.info(f"Designer {designer_id}: portfolio item {entry.id} '{entry.title}' added.")
        return designer.model_copy(deep=True)

    async def remove_portfolio_item(self, designer_id: int, item_id: int) -> Designer:
        await simulate_latency(250)
        designer = self._designers[self._index_of(designer_id)]
        position = next((i for i, p in enumerate(designer.portfolio) if p.id == item_id), None)
        if position is None:
            raise NotFound(f"Portfolio item {item_id} not found for designer {designer_id}")
        designer.portfolio.pop(position)
        designer.updated_at = utcnow()
        logger.info(f"Designer {designer_id}: portfolio item {item_id} removed.")
        return designer.model_copy(deep=True)

    async def upload_jewelry(self, designer_id: int, jewelry: JewelryUpload) -> UploadResult:
        """
        Adds a new piece to the designer's portfolio and publishes it to the catalog.

        The two writes hit different stores. If the catalog rejects the product,
        the portfolio entry that was just added is removed again before the
        error propagates.
        """
        entry = PortfolioItemCreate(
            image=jewelry.images[0] if jewelry.images else None,
            title=jewelry.name,
            description=jewelry.description,
            tags=[tag for tag in (jewelry.category, jewelry.metal, *jewelry.gemstones) if tag],
            metal=jewelry.metal,
            gemstones=jewelry.gemstones,
            completion_time=jewelry.completion_time,
        )
        designer = await self.add_portfolio_item(designer_id, entry)
        portfolio_id = designer.portfolio[-1].id

        try:
            product = await self._catalog.create(ProductCreate(
                name=jewelry.name,
                description=jewelry.description,
                category=jewelry.category,
                metal=jewelry.metal,
                gemstones=jewelry.gemstones,
                price=jewelry.price,
                stock=jewelry.stock,
                images=jewelry.images,
                designer_id=designer_id,
            ))
        except Exception:
            logger.exception(f"Catalog rejected upload from designer {designer_id}; "
                             f"rolling back portfolio item {portfolio_id}.")
            await self.remove_portfolio_item(designer_id, portfolio_id)
            raise

        return UploadResult(designer=designer, product=product)

    async def specialties(self) -> List[str]:
        await simulate_latency(200)
        return list(dict.fromkeys(s for d in self._designers for s in d.specialties))

    async def locations(self) -> List[str]:
        await simulate_latency(200)
        return list(dict.fromkeys(d.location for d in self._designers))


def get_designers(request: Request) -> DesignerStore:
    return request.app.state.stores.designers


# ===================================================================
# API Endpoints
# ===================================================================

@router.get("/", response_model=List[Designer], summary="List designers")
async def list_designers(
    specialty: Optional[str] = None,
    location: Optional[str] = None,
    min_rating: Optional[float] = Query(None, alias="minRating"),
    designers: DesignerStore = Depends(get_designers),
):
    filters = DesignerFilters(specialty=specialty, location=location, min_rating=min_rating)
    return await designers.list(filters)


@router.get("/specialties", response_model=List[str])
async def list_specialties(designers: DesignerStore = Depends(get_designers)):
    return await designers.specialties()


@router.get("/locations", response_model=List[str])
async def list_locations(designers: DesignerStore = Depends(get_designers)):
    return await designers.locations()


@router.get("/{designer_id}", response_model=Designer)
async def get_designer(designer_id: int, designers: DesignerStore = Depends(get_designers)):
    return await designers.get_by_id(designer_id)


@router.post("/", response_model=Designer, status_code=status.HTTP_201_CREATED)
async def create_designer(payload: DesignerCreate, designers: DesignerStore = Depends(get_designers)):
    return await designers.create(payload)


@router.patch("/{designer_id}", response_model=Designer)
async def update_designer(designer_id: int, payload: DesignerUpdate, designers: DesignerStore = Depends(get_designers)):
    return await designers.update(designer_id, payload)


@router.delete("/{designer_id}", response_model=Designer)
async def delete_designer(designer_id: int, designers: DesignerStore = Depends(get_designers)):
    return await designers.delete(designer_id)


@router.post("/{designer_id}/portfolio", response_model=Designer, status_code=status.HTTP_201_CREATED)
async def add_portfolio_item(
    designer_id: int, payload: PortfolioItemCreate, designers: DesignerStore = Depends(get_designers)
):
    return await designers.add_portfolio_item(designer_id, payload)


@router.delete("/{designer_id}/portfolio/{item_id}", response_model=Designer)
async def remove_portfolio_item(designer_id: int, item_id: int, designers: DesignerStore = Depends(get_designers)):
    return await designers.remove_portfolio_item(designer_id, item_id)


@router.post("/{designer_id}/uploads", response_model=UploadResult, status_code=status.HTTP_201_CREATED,
             summary="Upload new jewelry to the portfolio and the shop")
async def upload_jewelry(designer_id: int, payload: JewelryUpload, designers: DesignerStore = Depends(get_designers)):
    return await designers.upload_jewelry(designer_id, payload)
