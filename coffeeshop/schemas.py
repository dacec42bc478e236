from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import MilkType, OrderStatus, OrderType, Size, SugarLevel
from .pricing import MAX_EXTRA_SHOT, parse_item_notes


class OrderItemCreate(BaseModel):
    menu_item_id: int = Field(gt=0)
    item_name: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)
    size: Size = Size.M
    milk_type: MilkType = MilkType.none
    sugar_level: SugarLevel = SugarLevel.normal
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def limit_extra_shots(cls, value: Optional[str]) -> Optional[str]:
        shots, _ = parse_item_notes(value)
        if shots > MAX_EXTRA_SHOT:
            raise ValueError(f"At most {MAX_EXTRA_SHOT} extra shots per item")
        return value


class OrderCreate(BaseModel):
    customer_name: str
    order_type: OrderType
    items: List[OrderItemCreate] = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def require_customer_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: int
    item_name: str
    quantity: int
    unit_price_cents: int
    size: Size
    milk_type: MilkType
    sugar_level: SugarLevel
    notes: Optional[str] = None


class OrderHeaderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    order_type: OrderType
    status: OrderStatus
    total_cents: int
    queue_number: Optional[str] = None
    user_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class OrderRead(OrderHeaderRead):
    items: List[OrderItemRead]


class MenuItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    price_cents: int
    image_url: Optional[str] = None
    position: int


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    position: int
    items: List[MenuItemRead]


class MenuResponse(BaseModel):
    categories: List[CategoryRead]


class ItemSales(BaseModel):
    item_name: str
    quantity: int
    revenue_cents: int


class SummaryResponse(BaseModel):
    total_orders: int
    status_counts: dict[str, int]
    completed_orders: int
    revenue_cents: int
    average_order_cents: int
    top_items: List[ItemSales]
