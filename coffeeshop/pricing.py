"""Cart-side pricing and variant keys.

Everything here is pure: no session, no settings. Prices are integer minor
currency units throughout.

The extra-shot add-on travels inside the free-text notes of a line item as
``extra shot x<N>``. That encoding is deprecated; a structured add-ons field
should replace it. ``encode_item_notes``/``parse_item_notes`` exist so that
persisted orders keep reading back the same way.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

from .models import OrderItem, SugarLevel

EXTRA_SHOT_PRICE = 10
MAX_EXTRA_SHOT = 3
SUGAR_PERCENT_OPTIONS = (0, 25, 50, 75, 100)

_EXTRA_SHOT_RE = re.compile(r"extra\s*shot\s*x(\d+)", re.IGNORECASE)

SugarInput = Union[int, SugarLevel, str]


def sugar_from_percent(percent: int) -> SugarLevel:
    if percent <= 0:
        return SugarLevel.none
    if percent <= 25:
        return SugarLevel.less
    if percent <= 50:
        return SugarLevel.normal
    return SugarLevel.extra


def percent_from_sugar(level: SugarLevel | str) -> int:
    return {
        SugarLevel.none: 0,
        SugarLevel.less: 25,
        SugarLevel.normal: 50,
        SugarLevel.extra: 75,
    }[SugarLevel(level)]


def _sugar_bucket(sugar: SugarInput) -> SugarLevel:
    if isinstance(sugar, bool):
        raise TypeError("sugar must be a percentage or a sugar level")
    if isinstance(sugar, int):
        return sugar_from_percent(sugar)
    return SugarLevel(sugar)


def clamp_extra_shots(count: int) -> int:
    return max(0, min(MAX_EXTRA_SHOT, int(count)))


def unit_price(base_price: int, extra_shots: int = 0, shot_price: int = EXTRA_SHOT_PRICE) -> int:
    return base_price + clamp_extra_shots(extra_shots) * shot_price


def variant_key(
    item_id: int | str,
    sugar: SugarInput,
    extra_shots: int = 0,
    notes: Optional[str] = None,
    salt: Optional[str] = None,
) -> str:
    """Identity of a cart configuration.

    Lines that share a key are merged into one line. Pass ``salt`` to keep an
    otherwise identical line apart, e.g. while re-editing a specific entry.
    """
    key = (
        f"{item_id}|s:{_sugar_bucket(sugar).value}"
        f"|x:{clamp_extra_shots(extra_shots)}|n:{(notes or '').strip()}"
    )
    if salt:
        key = f"{key}|u:{salt}"
    return key


def encode_item_notes(extra_shots: int, notes: Optional[str] = None) -> Optional[str]:
    shots = clamp_extra_shots(extra_shots)
    parts = [
        f"extra shot x{shots}" if shots > 0 else None,
        notes.strip() if notes and notes.strip() else None,
    ]
    return "; ".join(p for p in parts if p) or None


def parse_item_notes(text: Optional[str]) -> Tuple[int, str]:
    """Split persisted item notes into ``(extra_shots, other_notes)``."""
    if not text:
        return 0, ""
    match = _EXTRA_SHOT_RE.search(text)
    if not match:
        return 0, text.strip()
    remainder = text[: match.start()] + text[match.end():]
    residual = "; ".join(part.strip() for part in remainder.split(";") if part.strip())
    return int(match.group(1)), residual


@dataclass
class CartLine:
    key: str
    item_id: int
    name: str
    base_price: int
    sugar: SugarLevel
    extra_shots: int = 0
    notes: Optional[str] = None
    quantity: int = 1
    shot_price: int = EXTRA_SHOT_PRICE

    @property
    def unit_price(self) -> int:
        return unit_price(self.base_price, self.extra_shots, self.shot_price)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class Cart:
    shot_price: int = EXTRA_SHOT_PRICE
    _lines: List[CartLine] = field(default_factory=list)

    def add(
        self,
        item_id: int,
        name: str,
        base_price: int,
        sugar: SugarInput = 50,
        extra_shots: int = 0,
        notes: Optional[str] = None,
        quantity: int = 1,
        salt: Optional[str] = None,
    ) -> CartLine:
        shots = clamp_extra_shots(extra_shots)
        key = variant_key(item_id, sugar, shots, notes, salt)
        existing = self._find(key)
        if existing is not None:
            existing.quantity += quantity
            return existing
        line = CartLine(
            key=key,
            item_id=item_id,
            name=name,
            base_price=base_price,
            sugar=_sugar_bucket(sugar),
            extra_shots=shots,
            notes=(notes or "").strip() or None,
            quantity=quantity,
            shot_price=self.shot_price,
        )
        self._lines.append(line)
        return line

    def decrement(self, item_id: int) -> None:
        for line in self._lines:
            if line.item_id == item_id and line.quantity > 0:
                line.quantity -= 1
                if line.quantity <= 0:
                    self._lines.remove(line)
                return

    def set_quantity(self, key: str, quantity: int) -> None:
        line = self._find(key)
        if line is None:
            return
        if quantity <= 0:
            self._lines.remove(line)
        else:
            line.quantity = quantity

    def remove(self, key: str) -> None:
        self._lines = [line for line in self._lines if line.key != key]

    def clear(self) -> None:
        self._lines = []

    def quantity_of(self, item_id: int) -> int:
        return sum(line.quantity for line in self._lines if line.item_id == item_id)

    def lines(self) -> List[CartLine]:
        return sorted(self._lines, key=lambda line: line.name.lower())

    def subtotal(self) -> int:
        return sum(line.line_total for line in self._lines)

    def to_order_items(self) -> List[dict]:
        return [
            {
                "menu_item_id": line.item_id,
                "item_name": line.name,
                "quantity": line.quantity,
                "unit_price_cents": line.unit_price,
                "size": "M",
                "milk_type": "none",
                "sugar_level": line.sugar.value,
                "notes": encode_item_notes(line.extra_shots, line.notes),
            }
            for line in self.lines()
        ]

    def load_order_items(self, items: Iterable[OrderItem]) -> None:
        """Prefill the cart from a persisted order, one line per stored item."""
        for item in items:
            raw_shots, other_notes = parse_item_notes(item.notes)
            shots = clamp_extra_shots(raw_shots)
            self.add(
                item_id=item.menu_item_id,
                name=item.item_name,
                base_price=item.unit_price_cents - shots * self.shot_price,
                sugar=SugarLevel(item.sugar_level),
                extra_shots=shots,
                notes=other_notes,
                quantity=item.quantity,
                salt=str(item.id),
            )

    def __len__(self) -> int:
        return len(self._lines)

    def _find(self, key: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.key == key:
                return line
        return None
