from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    completed = "completed"
    cancelled = "cancelled"


class OrderType(str, Enum):
    dine_in = "dine_in"
    takeaway = "takeaway"


class Size(str, Enum):
    S = "S"
    M = "M"
    L = "L"


class MilkType(str, Enum):
    none = "none"
    whole = "whole"
    skim = "skim"
    oat = "oat"
    soy = "soy"
    almond = "almond"


class SugarLevel(str, Enum):
    none = "none"
    less = "less"
    normal = "normal"
    extra = "extra"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    position: int = Field(default=0, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: Optional[str] = None
    price_cents: int = Field(ge=0)
    image_url: Optional[str] = None
    category_id: int = Field(foreign_key="categories.id", index=True)
    is_active: bool = Field(default=True, index=True)
    position: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_name: str = Field(index=True)
    order_type: OrderType
    status: OrderStatus = Field(default=OrderStatus.pending, index=True)
    total_cents: int = Field(default=0, ge=0)
    queue_number: Optional[str] = None
    user_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", ondelete="CASCADE", index=True)
    menu_item_id: int
    item_name: str
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)
    size: Size = Field(default=Size.M)
    milk_type: MilkType = Field(default=MilkType.none)
    sugar_level: SugarLevel = Field(default=SugarLevel.normal)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


__all__ = [
    "Category",
    "MenuItem",
    "MilkType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "Size",
    "SugarLevel",
]
