from decimal import Decimal

import pytest

from gymsales.errors import SaleValidationError
from gymsales.services.sale_schemas import SaleItemRequest
from gymsales.services.sale_validation_service import (
    PROBLEM_INACTIVE,
    PROBLEM_INSUFFICIENT_STOCK,
    PROBLEM_NOT_FOUND,
    PROBLEM_PRICE_MISMATCH,
    validate_sale_items,
)
from gymsales.time_utils import utcnow


def _item(product_id, quantity=1, unit_price="5.00"):
    return SaleItemRequest(product_id=product_id, quantity=quantity, unit_price=Decimal(unit_price))


def _codes(result):
    return [(p.product_id, p.code) for p in result.problems]


def test_valid_items_resolve_products(db_session, gym_a, product_a, service_a):
    result = validate_sale_items(gym_a.id, [_item(product_a.id, 3), _item(service_a.id, 1, "2.50")])

    assert result.ok
    assert set(result.products) == {product_a.id, service_a.id}
    result.raise_for_problems()


def test_every_problem_is_reported(db_session, gym_a, make_product):
    inactive = make_product(gym_a, name="Old shaker", status="inactive")
    scarce = make_product(gym_a, name="Creatine", price="20.00", stock=2)
    repriced = make_product(gym_a, name="Gloves", price="5.00")

    result = validate_sale_items(gym_a.id, [
        _item(99999),
        _item(inactive.id),
        _item(scarce.id, 5, "20.00"),
        _item(repriced.id, 1, "5.50"),
    ])

    assert not result.ok
    assert _codes(result) == [
        (99999, PROBLEM_NOT_FOUND),
        (inactive.id, PROBLEM_INACTIVE),
        (scarce.id, PROBLEM_INSUFFICIENT_STOCK),
        (repriced.id, PROBLEM_PRICE_MISMATCH),
    ]
    assert result.products == {}

    with pytest.raises(SaleValidationError) as exc_info:
        result.raise_for_problems()
    message = str(exc_info.value)
    assert message.startswith("Sale validation failed: ")
    assert "Product 99999 not found" in message
    assert "Product Old shaker is not active" in message
    assert "Insufficient stock for Creatine. Available: 2, Requested: 5" in message
    assert "Price mismatch for Gloves. Current: 5.00, Provided: 5.50" in message
    assert len(exc_info.value.details["problems"]) == 4


def test_one_line_can_fail_several_checks(db_session, gym_a, make_product):
    product = make_product(gym_a, name="Bad", status="inactive", stock=1)

    result = validate_sale_items(gym_a.id, [_item(product.id, 2, "9.00")])

    assert [code for _, code in _codes(result)] == [
        PROBLEM_INACTIVE, PROBLEM_INSUFFICIENT_STOCK, PROBLEM_PRICE_MISMATCH,
    ]


@pytest.mark.parametrize("unit_price, ok", [
    ("5.00", True),
    ("5.01", True),
    ("4.99", True),
    ("5.02", False),
    ("5.50", False),
])
def test_price_tolerance(db_session, gym_a, product_a, unit_price, ok):
    result = validate_sale_items(gym_a.id, [_item(product_a.id, 1, unit_price)])

    assert result.ok is ok


def test_untracked_product_ignores_stock(db_session, gym_a, service_a):
    result = validate_sale_items(gym_a.id, [_item(service_a.id, 50, "2.50")])

    assert result.ok


def test_tracked_product_without_stock_value_is_not_checked(db_session, gym_a, make_product):
    product = make_product(gym_a, name="Made to order", stock=None, track_inventory="advanced")

    result = validate_sale_items(gym_a.id, [_item(product.id, 500)])

    assert result.ok


def test_duplicate_lines_are_checked_against_combined_quantity(db_session, gym_a, product_a):
    result = validate_sale_items(gym_a.id, [_item(product_a.id, 6), _item(product_a.id, 6)])

    assert _codes(result) == [(product_a.id, PROBLEM_INSUFFICIENT_STOCK)]
    assert "Available: 10, Requested: 12" in result.problems[0].message


def test_soft_deleted_product_is_not_found(db_session, gym_a, product_a):
    product_a.deleted_at = utcnow()
    db_session.commit()

    result = validate_sale_items(gym_a.id, [_item(product_a.id)])

    assert _codes(result) == [(product_a.id, PROBLEM_NOT_FOUND)]


def test_other_gyms_product_is_not_found(db_session, gym_a, product_b):
    result = validate_sale_items(gym_a.id, [_item(product_b.id, 1, "3.00")])

    assert _codes(result) == [(product_b.id, PROBLEM_NOT_FOUND)]
