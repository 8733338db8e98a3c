# custom_orders.py
"""
Custom-order requests and their production milestones.

Every order carries the same fixed, ordered checklist of eight milestones
(see ``models.MILESTONE_NAMES``). The order-level ``status`` and
``current_milestone`` are recomputed from that checklist on every milestone
update, so they never diverge from it:

- ``current_milestone`` is the name of the first milestone that is not
  completed, or ``"Completed"`` once all of them are.
- ``status`` is ``"In Progress"`` while any milestone is open and
  ``"Completed"`` afterwards. Sub-states such as ``awaiting_approval`` are
  not reflected at order level.

Two status values sit outside that derivation: ``"Order Received"`` right
after creation and ``"Assigned"`` after a designer is assigned. The
``progress`` field on each order reports the milestone phase and the
assignment as separate facts.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import Field

from auth import get_current_user
from db import next_id, simulate_latency
from errors import NotFound
from models import (
    ASSIGNED, COMPLETED, IN_PROGRESS, MILESTONE_NAMES, ORDER_RECEIVED,
    CustomOrder, Milestone, MilestoneStatus, Priority, Schema, Specifications, User, utcnow,
)
from settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/custom-orders", tags=["Custom Orders"])

RECEIVED_NOTE = "Order placed and payment confirmed"


# --- Pydantic Schemas for Data Validation ---

class CustomOrderCreate(Schema):
    customer_id: str
    customer_name: Optional[str] = None
    specifications: Specifications
    budget: float = Field(..., gt=0)
    reference_images: List[str] = Field(default_factory=list)
    priority: Optional[Priority] = None
    estimated_completion: Optional[datetime] = None


class CustomOrderUpdate(Schema):
    """Customer-editable fields. Milestones and status only move through their own operations."""
    customer_name: Optional[str] = None
    specifications: Optional[Specifications] = None
    budget: Optional[float] = Field(None, gt=0)
    reference_images: Optional[List[str]] = None
    priority: Optional[Priority] = None
    estimated_completion: Optional[datetime] = None


class MilestoneUpdate(Schema):
    status: Optional[MilestoneStatus] = None
    images: Optional[List[str]] = None
    notes: Optional[str] = None


class AssignDesignerRequest(Schema):
    designer_id: int
    designer_name: str


class CustomOrderFilters(Schema):
    status: Optional[str] = None
    customer_id: Optional[str] = None
    designer_id: Optional[int] = None
    priority: Optional[str] = None


class OrderStatistics(Schema):
    total_orders: int
    status_counts: Dict[str, int]
    average_budget: int


# --- Lifecycle helpers ---

def initial_milestones(now: datetime) -> List[Milestone]:
    """The fixed checklist for a new order: the first milestone done, the rest pending."""
    return [
        Milestone(
            id=number,
            name=name,
            status="completed" if number == 1 else "pending",
            date=now if number == 1 else None,
            notes=RECEIVED_NOTE if number == 1 else "",
        )
        for number, name in enumerate(MILESTONE_NAMES, start=1)
    ]


def summarize_milestones(milestones: Sequence[Milestone]) -> Tuple[str, str]:
    """Returns ``(current_milestone, status)`` for a checklist."""
    for milestone in milestones:
        if milestone.status != "completed":
            return milestone.name, IN_PROGRESS
    return COMPLETED, COMPLETED


# --- Store ---

class CustomOrderStore:
    def __init__(self, records: Iterable[Dict[str, Any]] = ()):
        self.reset(records)

    def reset(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self._orders: List[CustomOrder] = [CustomOrder.model_validate(r) for r in records]

    def _index_of(self, order_id: int) -> int:
        for index, order in enumerate(self._orders):
            if order.id == order_id:
                return index
        raise NotFound(f"Order {order_id} not found")

    async def list(self, filters: Optional[CustomOrderFilters] = None) -> List[CustomOrder]:
        await simulate_latency(300)
        filters = filters or CustomOrderFilters()
        result = [o.model_copy(deep=True) for o in self._orders]

        if filters.status:
            wanted = filters.status.lower()
            result = [o for o in result if o.status.lower() == wanted]
        if filters.customer_id:
            result = [o for o in result if o.customer_id == filters.customer_id]
        if filters.designer_id is not None:
            result = [o for o in result if o.designer_id == filters.designer_id]
        if filters.priority:
            result = [o for o in result if o.priority == filters.priority]

        return result

    async def get_by_id(self, order_id: int) -> CustomOrder:
        await simulate_latency(250)
        return self._orders[self._index_of(order_id)].model_copy(deep=True)

    async def create(self, data: CustomOrderCreate) -> CustomOrder:
        await simulate_latency(400)
        now = utcnow()
        fields = data.model_dump(exclude={"priority", "estimated_completion"})
        order = CustomOrder(
            id=next_id(self._orders),
            **fields,
            currency=settings.CURRENCY,
            status=ORDER_RECEIVED,
            current_milestone=ORDER_RECEIVED,
            milestones=initial_milestones(now),
            priority=data.priority or "medium",
            created_at=now,
            estimated_completion=data.estimated_completion or now + timedelta(days=settings.CUSTOM_ORDER_LEAD_DAYS),
        )
        self._orders.append(order)
        logger.info(f"Custom order {order.id} received from customer {order.customer_id} "
                    f"({order.specifications.type}, budget {order.budget:.0f} {order.currency}).")
        return order.model_copy(deep=True)

    async def update(self, order_id: int, patch: CustomOrderUpdate) -> CustomOrder:
        await simulate_latency(350)
        index = self._index_of(order_id)
        changes = patch.model_dump(exclude_unset=True)
        updated = CustomOrder.model_validate(
            {**self._orders[index].model_dump(), **changes, "id": order_id, "updated_at": utcnow()}
        )
        self._orders[index] = updated
        logger.info(f"Custom order {order_id} updated: {sorted(changes)}")
        return updated.model_copy(deep=True)

    async def update_milestone(self, order_id: int, milestone_id: int, patch: MilestoneUpdate) -> CustomOrder:
        await simulate_latency(300)
        index = self._index_of(order_id)
        order = self._orders[index]

        position = next((i for i, m in enumerate(order.milestones) if m.id == milestone_id), None)
        if position is None:
            raise NotFound(f"Milestone {milestone_id} not found on order {order_id}")

        now = utcnow()
        previous = order.milestones[position]
        milestone = Milestone.model_validate({**previous.model_dump(), **patch.model_dump(exclude_unset=True)})
        # Re-completing keeps the first completion timestamp.
        if milestone.status == "completed" and not (previous.status == "completed" and previous.date):
            milestone.date = now

        milestones = list(order.milestones)
        milestones[position] = milestone
        current_milestone, order_status = summarize_milestones(milestones)

        self._orders[index] = order.model_copy(update={
            "milestones": milestones,
            "current_milestone": current_milestone,
            "status": order_status,
            "updated_at": now,
        })
        logger.info(f"Order {order_id}: milestone '{milestone.name}' -> {milestone.status}; "
                    f"current milestone '{current_milestone}'.")
        return self._orders[index].model_copy(deep=True)

    async def assign_designer(self, order_id: int, designer_id: int, designer_name: str) -> CustomOrder:
        await simulate_latency(250)
        index = self._index_of(order_id)
        self._orders[index] = self._orders[index].model_copy(update={
            "designer_id": designer_id,
            "designer_name": designer_name,
            "status": ASSIGNED,
            "updated_at": utcnow(),
        })
        logger.info(f"Order {order_id} assigned to designer {designer_id} ({designer_name}).")
        return self._orders[index].model_copy(deep=True)

    async def delete(self, order_id: int) -> CustomOrder:
        await simulate_latency(300)
        removed = self._orders.pop(self._index_of(order_id))
        logger.info(f"Custom order {order_id} deleted.")
        return removed

    async def statistics(self) -> OrderStatistics:
        await simulate_latency(200)
        total = len(self._orders)
        average = sum(o.budget for o in self._orders) / total if total else 0
        return OrderStatistics(
            total_orders=total,
            status_counts=dict(Counter(o.status for o in self._orders)),
            average_budget=round(average),
        )


def get_custom_orders(request: Request) -> CustomOrderStore:
    return request.app.state.stores.custom_orders


# --- API Endpoints ---

@router.get("/", response_model=List[CustomOrder], summary="List custom orders")
async def list_custom_orders(
    status: Optional[str] = None,
    customer_id: Optional[str] = Query(None, alias="customerId"),
    designer_id: Optional[int] = Query(None, alias="designerId"),
    priority: Optional[str] = None,
    orders: CustomOrderStore = Depends(get_custom_orders),
):
    filters = CustomOrderFilters(
        status=status, customer_id=customer_id, designer_id=designer_id, priority=priority
    )
    return await orders.list(filters)


@router.get("/mine", response_model=List[CustomOrder], summary="Custom orders of the signed-in customer")
async def my_custom_orders(
    current_user: User = Depends(get_current_user),
    orders: CustomOrderStore = Depends(get_custom_orders),
):
    return await orders.list(CustomOrderFilters(customer_id=current_user.id))


@router.get("/statistics", response_model=OrderStatistics)
async def custom_order_statistics(orders: CustomOrderStore = Depends(get_custom_orders)):
    return await orders.statistics()


@router.get("/{order_id}", response_model=CustomOrder)
async def get_custom_order(order_id: int, orders: CustomOrderStore = Depends(get_custom_orders)):
    return await orders.get_by_id(order_id)


@router.post("/", response_model=CustomOrder, status_code=status.HTTP_201_CREATED)
async def create_custom_order(payload: CustomOrderCreate, orders: CustomOrderStore = Depends(get_custom_orders)):
    return await orders.create(payload)


@router.patch("/{order_id}", response_model=CustomOrder)
async def update_custom_order(
    order_id: int, payload: CustomOrderUpdate, orders: CustomOrderStore = Depends(get_custom_orders)
):
    return await orders.update(order_id, payload)


@router.patch("/{order_id}/milestones/{milestone_id}", response_model=CustomOrder)
async def update_order_milestone(
    order_id: int,
    milestone_id: int,
    payload: MilestoneUpdate,
    orders: CustomOrderStore = Depends(get_custom_orders),
):
    return await orders.update_milestone(order_id, milestone_id, payload)


@router.post("/{order_id}/assign", response_model=CustomOrder)
async def assign_designer(
    order_id: int, payload: AssignDesignerRequest, orders: CustomOrderStore = Depends(get_custom_orders)
):
    return await orders.assign_designer(order_id, payload.designer_id, payload.designer_name)


@router.delete("/{order_id}", response_model=CustomOrder)
async def delete_custom_order(order_id: int, orders: CustomOrderStore = Depends(get_custom_orders)):
    return await orders.delete(order_id)
