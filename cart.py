# cart.py
"""
Shopping cart and checkout.

The cart holds line items that point at catalog products by id only. Lines
are resolved against the catalog every time they are read, so a product
that has been removed from the catalog silently drops out of the cart view
and out of the totals.

Checkout does not take a payment: it validates the shipping details,
prices the resolved cart, empties it and returns a confirmation.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Literal, Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import EmailStr, Field

from db import next_id, simulate_latency
from errors import NotFound, ValidationFailure
from models import CartItem, Product, Schema, utcnow
from products import CatalogStore
from settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cart", tags=["Cart"])


# --- Pydantic Schemas for Data Validation ---

class CartLine(CartItem):
    """A cart item together with the catalog product it resolved to."""
    product: Product


class AddToCartRequest(Schema):
    product_id: int
    quantity: int = Field(1, ge=1)
    selected_options: Dict[str, str] = Field(default_factory=dict)


class CartItemUpdate(Schema):
    quantity: Optional[int] = Field(None, ge=1)
    selected_options: Optional[Dict[str, str]] = None


class CartTotals(Schema):
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int


class ClearCartResponse(Schema):
    removed: int


class ShippingDetails(Schema):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)


class CheckoutRequest(Schema):
    shipping: ShippingDetails
    payment_method: Literal["card", "upi", "netbanking", "cod"] = "card"


class OrderConfirmation(Schema):
    order_number: str
    lines: List[CartLine]
    totals: CartTotals
    currency: str
    shipping: ShippingDetails
    payment_method: str
    placed_at: datetime


# --- Store ---

class CartStore:
    def __init__(self, catalog: CatalogStore, records: Iterable[Dict[str, Any]] = ()):
        self._catalog = catalog
        self.reset(records)

    def reset(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self._items: List[CartItem] = [CartItem.model_validate(r) for r in records]

    def _index_of(self, item_id: int) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        raise NotFound(f"Cart item {item_id} not found")

    async def get_all(self) -> List[CartLine]:
        await simulate_latency(250)
        items = list(self._items)
        resolved = await asyncio.gather(
            *(self._catalog.get_by_id(item.product_id) for item in items), return_exceptions=True
        )
        lines = []
        for item, product in zip(items, resolved):
            if isinstance(product, NotFound):
                logger.warning(f"Cart item {item.id} points at missing product {item.product_id}; skipping it.")
                continue
            if isinstance(product, BaseException):
                raise product
            lines.append(CartLine(**item.model_dump(), product=product))
        return lines

    async def add(
        self, product_id: int, quantity: int = 1, selected_options: Optional[Dict[str, str]] = None
    ) -> CartItem:
        await simulate_latency(300)
        selected_options = selected_options or {}

        for index, item in enumerate(self._items):
            if item.product_id == product_id:
                merged = CartItem.model_validate({
                    **item.model_dump(),
                    "quantity": item.quantity + quantity,
                    "selected_options": {**item.selected_options, **selected_options},
                    "updated_at": utcnow(),
                })
                self._items[index] = merged
                logger.info(f"Cart: product {product_id} quantity now {merged.quantity}.")
                return merged.model_copy(deep=True)

        item = CartItem(
            id=next_id(self._items),
            product_id=product_id,
            quantity=quantity,
            selected_options=selected_options,
            added_at=utcnow(),
        )
        self._items.append(item)
        logger.info(f"Cart: added product {product_id} x{quantity} as line {item.id}.")
        return item.model_copy(deep=True)

    async def update(self, item_id: int, patch: CartItemUpdate) -> CartItem:
        await simulate_latency(250)
        index = self._index_of(item_id)
        changes = patch.model_dump(exclude_unset=True)
        updated = CartItem.model_validate(
            {**self._items[index].model_dump(), **changes, "id": item_id, "updated_at": utcnow()}
        )
        self._items[index] = updated
        return updated.model_copy(deep=True)

    async def remove(self, item_id: int) -> CartItem:
        await simulate_latency(200)
        removed = self._items.pop(self._index_of(item_id))
        logger.info(f"Cart: removed line {item_id}.")
        return removed

    async def clear(self) -> int:
        await simulate_latency(200)
        count = len(self._items)
        self._items.clear()
        logger.info(f"Cart: cleared {count} items.")
        return count

    async def item_count(self) -> int:
        await simulate_latency(150)
        return sum(item.quantity for item in self._items)

    def _price(self, lines: List[CartLine]) -> CartTotals:
        subtotal = sum(line.product.price * line.quantity for line in lines)
        tax = subtotal * settings.TAX_RATE
        shipping = 0.0 if subtotal > settings.FREE_SHIPPING_THRESHOLD else settings.SHIPPING_FEE
        return CartTotals(
            subtotal=subtotal,
            tax=tax,
            shipping=shipping,
            total=subtotal + tax + shipping,
            item_count=sum(line.quantity for line in lines),
        )

    async def get_total(self) -> CartTotals:
        await simulate_latency(200)
        return self._price(await self.get_all())

    async def checkout(self, request: CheckoutRequest) -> OrderConfirmation:
        lines = await self.get_all()
        if not lines:
            raise ValidationFailure("Cannot check out an empty cart")

        totals = self._price(lines)
        confirmation = OrderConfirmation(
            order_number=f"JC-{uuid.uuid4().hex[:10].upper()}",
            lines=lines,
            totals=totals,
            currency=settings.CURRENCY,
            shipping=request.shipping,
            payment_method=request.payment_method,
            placed_at=utcnow(),
        )
        await self.clear()
        logger.info(
            f"Checkout {confirmation.order_number}: {totals.item_count} items, "
            f"total {totals.total:.2f} {settings.CURRENCY} via {request.payment_method}."
        )
        return confirmation


def get_cart(request: Request) -> CartStore:
    return request.app.state.stores.cart


# --- API Endpoints ---

@router.get("/", response_model=List[CartLine], summary="List cart lines with their products")
async def list_cart(cart: CartStore = Depends(get_cart)):
    return await cart.get_all()


@router.get("/total", response_model=CartTotals)
async def cart_total(cart: CartStore = Depends(get_cart)):
    return await cart.get_total()


@router.get("/count", response_model=int)
async def cart_count(cart: CartStore = Depends(get_cart)):
    return await cart.item_count()


@router.post("/", response_model=CartItem, status_code=status.HTTP_201_CREATED)
async def add_to_cart(payload: AddToCartRequest, cart: CartStore = Depends(get_cart)):
    return await cart.add(payload.product_id, payload.quantity, payload.selected_options)


@router.patch("/{item_id}", response_model=CartItem)
async def update_cart_item(item_id: int, payload: CartItemUpdate, cart: CartStore = Depends(get_cart)):
    return await cart.update(item_id, payload)


@router.delete("/{item_id}", response_model=CartItem)
async def remove_cart_item(item_id: int, cart: CartStore = Depends(get_cart)):
    return await cart.remove(item_id)


@router.delete("/", response_model=ClearCartResponse)
async def clear_cart(cart: CartStore = Depends(get_cart)):
    return ClearCartResponse(removed=await cart.clear())


@router.post("/checkout", response_model=OrderConfirmation, status_code=status.HTTP_201_CREATED)
async def checkout(payload: CheckoutRequest, cart: CartStore = Depends(get_cart)):
    """
    Places an order for everything in the cart.
    1. Resolves the cart lines against the catalog and prices them.
    2. Empties the cart.
    3. Returns the confirmation with an order number.
    """
    return await cart.checkout(payload)
