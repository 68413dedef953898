"""Tests for line-item and amount normalisation"""

import pytest

from canteen_api.errors import ValidationError
from canteen_api.services.items import normalize_items, to_minor_units


def test_structured_items_are_normalised():
    items = normalize_items(
        [
            {"id": "1", "name": "Roti", "qty": 2, "price": 10},
            {"itemId": 7, "quantity": 1, "unitPrice": 45.5},
        ]
    )

    assert items[0].model_dump() == {"id": "1", "name": "Roti", "quantity": 2, "unit_price": 10}
    assert items[1].id == "7"
    assert items[1].name == "7"
    assert items[1].unit_price == 45.5


def test_legacy_quantity_map_drops_unordered_dishes():
    items = normalize_items({"roti": 3, "paneer_butter_masala": 0})

    assert len(items) == 1
    assert items[0].name == "roti"
    assert items[0].quantity == 3
    assert items[0].unit_price is None


def test_missing_items_is_an_empty_order():
    assert normalize_items(None) == []


@pytest.mark.parametrize(
    "items",
    [
        [{"id": "1", "name": "Roti", "qty": 0, "price": 10}],
        [{"id": "1", "name": "Roti", "qty": 2, "price": -1}],
        [{"id": "1", "name": "Roti", "qty": True, "price": 10}],
        [{"id": "1", "name": "Roti", "qty": "2", "price": 10}],
        [{"id": "1", "name": "Roti", "qty": 2}],
        [{"id": " ", "qty": 2, "price": 10}],
        ["Roti"],
        {"roti": -1},
        "roti x2",
    ],
)
def test_malformed_items_are_rejected(items):
    with pytest.raises(ValidationError):
        normalize_items(items)


def test_amount_converted_to_minor_units():
    assert to_minor_units(20) == 2000
    assert to_minor_units(19.99) == 1999
    assert to_minor_units(0.005) == 1
    assert to_minor_units(21474836.47) == 2147483647


@pytest.mark.parametrize(
    "amount",
    [0, -5, "20", True, None, float("nan"), 1e20, 1e300, 21474836.48],
)
def test_invalid_amounts_are_rejected(amount):
    with pytest.raises(ValidationError):
        to_minor_units(amount)
