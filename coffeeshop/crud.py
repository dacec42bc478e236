from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from . import lifecycle
from .errors import DegradedWriteError, OrderValidationError, StorageError
from .menu_data import DEFAULT_CATEGORIES, DEFAULT_MENU_ITEMS
from .models import Category, MenuItem, Order, OrderItem, OrderStatus, utcnow
from .pricing import EXTRA_SHOT_PRICE, parse_item_notes, unit_price
from .schemas import OrderCreate, OrderItemCreate

logger = logging.getLogger(__name__)

QUEUE_PREFIX = "M"


def format_queue_number(order_id: int, prefix: str = QUEUE_PREFIX) -> str:
    return f"{prefix}{order_id:02d}"


# -------------------------
# Order operations
# -------------------------

def create_order(
    session: Session,
    customer_name: str,
    order_type: str,
    items: Iterable[OrderItemCreate | dict],
    notes: str | None = None,
    user_id: str | None = None,
    *,
    atomic: bool = True,
    verify_prices: bool = False,
    extra_shot_price: int = EXTRA_SHOT_PRICE,
    queue_prefix: str = QUEUE_PREFIX,
) -> Order:
    """Validate, price and persist a new pending order.

    The total is summed from the submitted unit prices. With ``verify_prices``
    each unit price is also checked against the current menu.

    With ``atomic`` (the default) the header, queue number and items are
    committed together. Otherwise they are written one after another and a
    failure after the header is written raises ``DegradedWriteError``.
    """
    payload = _validate_order(customer_name, order_type, items, notes)
    if verify_prices:
        _verify_unit_prices(session, payload.items, extra_shot_price)

    total = sum(item.quantity * item.unit_price_cents for item in payload.items)
    now = utcnow()
    order = Order(
        customer_name=payload.customer_name,
        order_type=payload.order_type,
        status=OrderStatus.pending,
        total_cents=total,
        user_id=user_id,
        notes=payload.notes,
        created_at=now,
        updated_at=now,
    )
    if atomic:
        _insert_order_atomic(session, order, payload.items, queue_prefix)
    else:
        _insert_order_sequential(session, order, payload.items, queue_prefix)
    session.refresh(order)
    logger.info(
        "Created order %s (%s) for %s, total %s",
        order.id,
        order.queue_number,
        order.customer_name,
        order.total_cents,
    )
    return order


def get_order(session: Session, order_id: int) -> Order | None:
    try:
        return session.get(Order, order_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to load order %s", order_id)
        raise StorageError("Failed to load order") from exc


def get_order_items(session: Session, order_id: int) -> List[OrderItem]:
    statement = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id.asc())
    try:
        return list(session.exec(statement))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load items of order %s", order_id)
        raise StorageError("Failed to load order items") from exc


def get_items_by_order(session: Session, order_ids: List[int]) -> Dict[int, List[OrderItem]]:
    grouped: Dict[int, List[OrderItem]] = {order_id: [] for order_id in order_ids}
    if not order_ids:
        return grouped
    statement = (
        select(OrderItem)
        .where(OrderItem.order_id.in_(order_ids))
        .order_by(OrderItem.order_id.asc(), OrderItem.id.asc())
    )
    try:
        rows = list(session.exec(statement))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load order items")
        raise StorageError("Failed to load order items") from exc
    for item in rows:
        grouped[item.order_id].append(item)
    return grouped


def list_orders(session: Session, limit: int = 50, status: OrderStatus | str | None = None) -> List[Order]:
    statement = select(Order)
    if status is not None:
        statement = statement.where(Order.status == OrderStatus(status))
    statement = statement.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
    try:
        return list(session.exec(statement))
    except SQLAlchemyError as exc:
        logger.exception("Failed to list orders")
        raise StorageError("Failed to list orders") from exc


def update_order_status(
    session: Session,
    order_id: int,
    status: OrderStatus | str,
    *,
    strict: bool = False,
) -> Order | None:
    try:
        target = OrderStatus(status)
    except ValueError as exc:
        raise OrderValidationError(f"Invalid status: {status}") from exc

    order = session.get(Order, order_id)
    if order is None:
        return None
    lifecycle.validate_transition(order=order, target_status=target, strict=strict)

    previous = OrderStatus(order.status)
    order.status = target
    order.updated_at = utcnow()
    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to update status of order %s", order_id)
        raise StorageError("Failed to update order status") from exc
    session.refresh(order)
    logger.info("Order %s status %s -> %s", order_id, previous.value, target.value)
    return order


def _validate_order(customer_name, order_type, items, notes) -> OrderCreate:
    try:
        return OrderCreate(
            customer_name=customer_name,
            order_type=order_type,
            items=items,
            notes=notes,
        )
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        message = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors
        )
        raise OrderValidationError(message, errors) from exc


def _verify_unit_prices(session: Session, items: List[OrderItemCreate], shot_price: int) -> None:
    for item in items:
        menu_item = session.get(MenuItem, item.menu_item_id)
        if menu_item is None or not menu_item.is_active:
            raise OrderValidationError(f"Invalid menu item: {item.menu_item_id}")
        shots, _ = parse_item_notes(item.notes)
        expected = unit_price(menu_item.price_cents, shots, shot_price)
        if item.unit_price_cents != expected:
            raise OrderValidationError(
                f"Price mismatch for {item.item_name}: "
                f"expected {expected}, got {item.unit_price_cents}"
            )


def _build_order_items(order_id: int, items: List[OrderItemCreate], created_at: datetime) -> List[OrderItem]:
    return [
        OrderItem(
            order_id=order_id,
            menu_item_id=item.menu_item_id,
            item_name=item.item_name,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            size=item.size,
            milk_type=item.milk_type,
            sugar_level=item.sugar_level,
            notes=item.notes,
            created_at=created_at,
        )
        for item in items
    ]


def _insert_order_atomic(session: Session, order: Order, items: List[OrderItemCreate], prefix: str) -> None:
    created_at = order.created_at
    try:
        session.add(order)
        session.flush()
        order.queue_number = format_queue_number(order.id, prefix)
        session.add_all(_build_order_items(order.id, items, created_at))
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to create order")
        raise StorageError("Failed to create order") from exc


def _insert_order_sequential(session: Session, order: Order, items: List[OrderItemCreate], prefix: str) -> None:
    logger.warning("Atomic order writes are disabled; writing order header and items separately")
    created_at = order.created_at
    try:
        session.add(order)
        session.flush()
        order_id = order.id
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Failed to create order")
        raise StorageError("Failed to create order") from exc

    # the header is visible from here on; any later failure leaves a partial order
    try:
        order.queue_number = format_queue_number(order_id, prefix)
        session.add(order)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Order %s was saved without its queue number", order_id)
        raise DegradedWriteError(f"Order {order_id} was saved without its queue number or items", order_id) from exc

    try:
        session.add_all(_build_order_items(order_id, items, created_at))
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Order %s was saved without its items", order_id)
        raise DegradedWriteError(f"Order {order_id} was saved without its items", order_id) from exc


# -------------------------
# Menu operations
# -------------------------

def get_menu(session: Session) -> List[dict]:
    categories = session.exec(select(Category).order_by(Category.position.asc(), Category.id.asc())).all()
    items = session.exec(
        select(MenuItem)
        .where(MenuItem.is_active.is_(True))
        .order_by(MenuItem.position.asc(), MenuItem.id.asc())
    ).all()
    return [
        {
            "id": category.id,
            "name": category.name,
            "description": category.description,
            "image_url": category.image_url,
            "position": category.position,
            "items": [
                {
                    "id": item.id,
                    "name": item.name,
                    "description": item.description,
                    "price_cents": item.price_cents,
                    "image_url": item.image_url,
                    "position": item.position,
                }
                for item in items
                if item.category_id == category.id
            ],
        }
        for category in categories
    ]


def ensure_default_menu(session: Session) -> None:
    existing_count = session.exec(select(func.count(Category.id))).one()
    if existing_count:
        return
    now = utcnow()
    for category_data in DEFAULT_CATEGORIES:
        category = Category(**category_data, created_at=now, updated_at=now)
        session.add(category)
        session.flush()
        for position, item in enumerate(DEFAULT_MENU_ITEMS.get(category.name, []), start=1):
            session.add(
                MenuItem(
                    **item,
                    category_id=category.id,
                    position=position,
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
            )
    session.commit()
    logger.info("Seeded default menu with %s categories", len(DEFAULT_CATEGORIES))


# -------------------------
# Reports
# -------------------------

def compute_summary(session: Session, start: datetime | None = None, end: datetime | None = None) -> dict:
    in_range = []
    if start is not None:
        in_range.append(Order.created_at >= start)
    if end is not None:
        in_range.append(Order.created_at <= end)
    completed = [*in_range, Order.status == OrderStatus.completed]

    status_counts = {status.value: 0 for status in OrderStatus}
    status_stmt = select(Order.status, func.count(Order.id)).where(*in_range).group_by(Order.status)
    for status, count in session.exec(status_stmt).all():
        status_counts[OrderStatus(status).value] = int(count or 0)

    completed_orders = status_counts[OrderStatus.completed.value]
    revenue = session.exec(select(func.coalesce(func.sum(Order.total_cents), 0)).where(*completed)).one()
    revenue = int(revenue or 0)

    quantity_sum = func.coalesce(func.sum(OrderItem.quantity), 0)
    items_stmt = (
        select(
            OrderItem.item_name,
            quantity_sum,
            func.coalesce(func.sum(OrderItem.quantity * OrderItem.unit_price_cents), 0),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .where(*completed)
        .group_by(OrderItem.item_name)
        .order_by(quantity_sum.desc(), OrderItem.item_name.asc())
    )
    top_items = [
        {
            "item_name": row[0],
            "quantity": int(row[1] or 0),
            "revenue_cents": int(row[2] or 0),
        }
        for row in session.exec(items_stmt).all()
    ]

    return {
        "total_orders": sum(status_counts.values()),
        "status_counts": status_counts,
        "completed_orders": completed_orders,
        "revenue_cents": revenue,
        "average_order_cents": revenue // completed_orders if completed_orders else 0,
        "top_items": top_items,
    }
