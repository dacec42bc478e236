from __future__ import annotations

import re
from typing import List, Sequence

from .config import ReceiptSettings
from .models import Order, OrderItem
from .pricing import parse_item_notes, percent_from_sugar

RECEIPT_WIDTHS = {"58mm": 32, "80mm": 48}

_TABLE_NUMBER_RE = re.compile(r"\d+")


def format_money(cents: int, currency: str = "") -> str:
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    amount = f"{sign}{cents // 100:,}.{cents % 100:02d}"
    return f"{amount} {currency}".rstrip()


def table_number(customer_name: str | None) -> str:
    match = _TABLE_NUMBER_RE.search(customer_name or "")
    return match.group(0) if match else "-"


def item_details(item: OrderItem) -> str:
    shots, other_notes = parse_item_notes(item.notes)
    parts = [f"sweet {percent_from_sugar(item.sugar_level)}%"]
    if shots:
        parts.append(f"extra shot x{shots}")
    if other_notes:
        parts.append(other_notes)
    return " • ".join(parts)


def render_receipt(order: Order, items: Sequence[OrderItem], settings: ReceiptSettings) -> str:
    """Render a fixed-width text receipt for a thermal printer.

    Prices already include VAT, so subtotal and total are the same figure.
    """
    width = RECEIPT_WIDTHS[settings.print_format]
    rule = "-" * width
    lines: List[str] = []

    if settings.print_header:
        lines.extend(part.center(width).rstrip() for part in settings.print_header.strip().splitlines())
    lines.append(settings.store_name.upper().center(width).rstrip())
    if settings.show_store_details:
        for detail in (settings.address, settings.phone, settings.email):
            if detail and detail.strip():
                lines.append(detail.strip().center(width).rstrip())

    lines.append(rule)
    lines.append(_columns(f"Order #{order.id}", order.created_at.strftime("%Y-%m-%d %H:%M"), width))
    if settings.show_customer_details:
        lines.append(f"Table: {table_number(order.customer_name)}")
        lines.append(f"Host: {order.customer_name}")
    if settings.print_token and order.queue_number:
        lines.append(f"Token: {order.queue_number}")
    lines.append(rule)

    subtotal = 0
    for item in items:
        line_total = item.line_total_cents
        subtotal += line_total
        lines.append(item.item_name)
        lines.append(
            _columns(
                f"  {item.quantity}x {format_money(item.unit_price_cents)}",
                format_money(line_total),
                width,
            )
        )
        if settings.show_notes:
            lines.append(f"  {item_details(item)}")

    lines.append(rule)
    lines.append(_columns("Subtotal:", format_money(subtotal, settings.currency), width))
    lines.append(_columns("Total:", format_money(subtotal, settings.currency), width))
    lines.append("Prices include VAT")

    if settings.print_footer:
        lines.append(rule)
        lines.extend(part.center(width).rstrip() for part in settings.print_footer.strip().splitlines())

    return "\n".join(lines) + "\n"


def _columns(left: str, right: str, width: int) -> str:
    gap = max(1, width - len(left) - len(right))
    return f"{left}{' ' * gap}{right}"
