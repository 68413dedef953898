"""Normalisation of order line items and amounts at the API boundary"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional

from canteen_api.errors import ValidationError
from canteen_api.schemas.order import LineItem

# Largest total the orders table column can hold
MAX_AMOUNT_MINOR = 2**31 - 1


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _first_present(entry: dict, *keys: str) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def _structured_item(index: int, entry: Any) -> LineItem:
    if not isinstance(entry, dict):
        raise ValidationError(f"items[{index}] must be an object")

    item_id = _text(_first_present(entry, "id", "itemId", "item_id"))
    name = _text(entry.get("name"))
    if item_id is None and name is None:
        raise ValidationError(f"items[{index}] needs a non-empty id or name")

    quantity = _first_present(entry, "qty", "quantity")
    if not _is_number(quantity) or quantity <= 0:
        raise ValidationError(f"items[{index}] quantity must be a number greater than 0")

    price = _first_present(entry, "price", "unitPrice", "unit_price")
    if not _is_number(price) or price < 0:
        raise ValidationError(f"items[{index}] price must be a number of at least 0")

    return LineItem(id=item_id or name, name=name or item_id, quantity=quantity, unit_price=price)


def _legacy_items(quantities: dict) -> List[LineItem]:
    items = []
    for key, quantity in quantities.items():
        name = _text(key)
        if name is None:
            raise ValidationError("item names must be non-empty")
        if not _is_number(quantity) or quantity < 0:
            raise ValidationError(f"quantity for '{name}' must be a number of at least 0")
        # The legacy map lists every dish on the menu; unordered ones are 0
        if quantity == 0:
            continue
        items.append(LineItem(id=name, name=name, quantity=quantity, unit_price=None))
    return items


def normalize_items(raw: Any) -> List[LineItem]:
    """
    Accept either a list of line-item objects or the legacy flat map of
    dish name to quantity, and return canonical line items.
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return [_structured_item(index, entry) for index, entry in enumerate(raw)]
    if isinstance(raw, dict):
        return _legacy_items(raw)
    raise ValidationError("items must be a list of line items or a map of quantities")


def to_minor_units(amount: Any) -> int:
    """Convert a positive major-unit amount to integer minor units"""
    if not _is_number(amount):
        raise ValidationError("totalAmount must be a number")
    minor = Decimal(str(amount)) * 100
    if minor > MAX_AMOUNT_MINOR:
        raise ValidationError("totalAmount is too large")
    minor = minor.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if minor <= 0:
        raise ValidationError("totalAmount must be greater than 0")
    return int(minor)
