# models.py
"""
Record models for the Jewelcraft storefront.

This file defines the records every in-memory store keeps, providing a
single source of truth for the shape of the seed data and of API payloads.
Attributes are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Schema(BaseModel):
    """Base for all records and request/response bodies."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------
# Catalog
# -----------------------
class Product(Schema):
    id: int
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
    designer_id: Optional[int] = None  # denormalized, not enforced
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -----------------------
# Cart
# -----------------------
class CartItem(Schema):
    id: int
    product_id: int  # weak reference, resolved against the catalog on read
    quantity: int = Field(1, ge=1)
    selected_options: Dict[str, str] = Field(default_factory=dict)  # size, engraving, ...
    added_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -----------------------
# Custom orders
# -----------------------
MilestoneStatus = Literal["pending", "in_progress", "awaiting_approval", "completed"]
Priority = Literal["low", "medium", "high"]

MILESTONE_NAMES = (
    "Order Received",
    "Design Sketch",
    "Wax Model Creation",
    "Metal Casting",
    "Stone Setting",
    "Final Polish",
    "Quality Check",
    "Delivery",
)

# Order-level status strings
ORDER_RECEIVED = "Order Received"
ASSIGNED = "Assigned"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"


class Specifications(Schema):
    type: str  # jewelry category, e.g. "Ring"
    metal: str = ""
    gemstones: List[str] = Field(default_factory=list)
    occasion: str = ""
    style: str = ""
    notes: str = ""


class Milestone(Schema):
    id: int
    name: str
    status: MilestoneStatus = "pending"
    date: Optional[datetime] = None  # set when the milestone is completed
    images: List[str] = Field(default_factory=list)
    notes: str = ""


class OrderProgress(Schema):
    phase: Literal["received", "in_progress", "completed"]
    current_milestone_id: Optional[int] = None
    assigned: bool = False
    designer_id: Optional[int] = None


def derive_progress(milestones: Sequence[Milestone], designer_id: Optional[int] = None) -> OrderProgress:
    """Single pure derivation of an order's progress from its checklist and assignment."""
    open_milestones = [m for m in milestones if m.status != "completed"]
    assigned = designer_id is not None

    if not open_milestones:
        return OrderProgress(phase="completed", assigned=assigned, designer_id=designer_id)

    received = milestones[0].status == "completed" and all(m.status == "pending" for m in milestones[1:])
    return OrderProgress(
        phase="received" if received else "in_progress",
        current_milestone_id=open_milestones[0].id,
        assigned=assigned,
        designer_id=designer_id,
    )


class CustomOrder(Schema):
    id: int
    customer_id: str
    customer_name: Optional[str] = None
    designer_id: Optional[int] = None
    designer_name: Optional[str] = None
    specifications: Specifications
    budget: float = Field(..., gt=0)
    currency: str = "INR"
    reference_images: List[str] = Field(default_factory=list)
    status: str = ORDER_RECEIVED
    current_milestone: str = ORDER_RECEIVED
    milestones: List[Milestone]
    priority: Priority = "medium"
    created_at: datetime
    updated_at: Optional[datetime] = None
    estimated_completion: Optional[datetime] = None  # informational only

    @computed_field
    @property
    def progress(self) -> OrderProgress:
        return derive_progress(self.milestones, self.designer_id)


# -----------------------
# Designers
# -----------------------
class PortfolioItem(Schema):
    id: int  # unique within one designer's portfolio only
    image: Optional[str] = None
    title: str
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    metal: str = ""
    gemstones: List[str] = Field(default_factory=list)
    completion_time: Optional[str] = None
    created_at: Optional[datetime] = None


class Designer(Schema):
    id: int
    name: str
    email: Optional[str] = None
    bio: str = ""
    specialties: List[str] = Field(default_factory=list)
    location: str = ""
    rating: float = 0
    completed_orders: int = 0
    active_orders: int = 0
    avatar: Optional[str] = None
    portfolio: List[PortfolioItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# -----------------------
# Users
# -----------------------
Role = Literal["customer", "designer", "admin"]


class User(Schema):
    id: str
    name: str
    email: str
    role: Role = "customer"
    phone: Optional[str] = None
    avatar: Optional[str] = None
    address: Optional[str] = None
