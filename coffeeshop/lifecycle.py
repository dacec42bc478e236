"""
Order status rules.

Two modes are supported. The permissive mode accepts any status from any
state, which is how the shop floor screens have always behaved (staff flip
between pending/preparing/ready freely). The strict mode only allows forward
progress along ORDER_FLOW, plus cancelling a non-terminal order, and never
leaves a terminal state.

No database writes happen here.
"""

from __future__ import annotations

from .errors import InvalidStatusTransition
from .models import Order, OrderStatus

ORDER_FLOW = (
    OrderStatus.pending,
    OrderStatus.preparing,
    OrderStatus.ready,
    OrderStatus.completed,
)

TERMINAL_STATES = {
    OrderStatus.completed,
    OrderStatus.cancelled,
}

ALLOWED_TRANSITIONS = {
    OrderStatus.pending: {OrderStatus.preparing, OrderStatus.cancelled},
    OrderStatus.preparing: {OrderStatus.ready, OrderStatus.cancelled},
    OrderStatus.ready: {OrderStatus.completed, OrderStatus.cancelled},
}


def can_transition(*, from_status: OrderStatus, to_status: OrderStatus, strict: bool = False) -> bool:
    from_status = OrderStatus(from_status)
    to_status = OrderStatus(to_status)
    if from_status == to_status:
        return True
    if not strict:
        return True
    if from_status in TERMINAL_STATES:
        return False
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, order: Order, target_status: OrderStatus, strict: bool = False) -> None:
    if not can_transition(from_status=order.status, to_status=target_status, strict=strict):
        raise InvalidStatusTransition(
            f"Order {order.id} cannot transition from "
            f"'{OrderStatus(order.status).value}' to '{OrderStatus(target_status).value}'"
        )
