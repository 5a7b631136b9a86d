# Overview: Checks proposed sale line items against catalog state, collecting every problem.

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from flask import current_app

from ..errors import SaleValidationError
from ..models import Product
from .catalog_service import find_products
from .sale_schemas import SaleItemRequest

PROBLEM_NOT_FOUND = "not_found"
PROBLEM_INACTIVE = "inactive"
PROBLEM_INSUFFICIENT_STOCK = "insufficient_stock"
PROBLEM_PRICE_MISMATCH = "price_mismatch"


@dataclass(frozen=True)
class ValidationProblem:
    product_id: int
    code: str
    message: str

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "code": self.code, "message": self.message}


@dataclass
class SaleValidationResult:
    """
    Either the resolved products (keyed by id) or the problems found.

    Problems are never empty when the result is not ok.
    """
    products: dict[int, Product] = field(default_factory=dict)
    problems: list[ValidationProblem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems

    def raise_for_problems(self) -> None:
        if self.problems:
            raise SaleValidationError(
                "Sale validation failed: " + ", ".join(p.message for p in self.problems),
                details={"problems": [p.to_dict() for p in self.problems]},
            )


def _price_tolerance() -> Decimal:
    return Decimal(str(current_app.config.get("SALE_PRICE_TOLERANCE", "0.01")))


def validate_sale_items(gym_id: int, items: list[SaleItemRequest], *, lock: bool = False) -> SaleValidationResult:
    """
    Validate every line item; nothing short-circuits.

    Stock is checked against the quantity requested across all lines naming
    the same product, and each product/problem pair is reported once.
    """
    products = find_products(gym_id, [item.product_id for item in items], lock=lock)
    tolerance = _price_tolerance()

    requested: dict[int, int] = defaultdict(int)
    for item in items:
        requested[item.product_id] += item.quantity

    problems: list[ValidationProblem] = []
    reported: set[tuple[int, str]] = set()

    def _report(product_id: int, code: str, message: str) -> None:
        if (product_id, code) in reported:
            return
        reported.add((product_id, code))
        problems.append(ValidationProblem(product_id, code, message))

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            _report(item.product_id, PROBLEM_NOT_FOUND, f"Product {item.product_id} not found")
            continue

        if not product.is_active:
            _report(product.id, PROBLEM_INACTIVE, f"Product {product.name} is not active")

        if product.tracks_inventory and product.stock < requested[product.id]:
            _report(
                product.id,
                PROBLEM_INSUFFICIENT_STOCK,
                f"Insufficient stock for {product.name}. "
                f"Available: {product.stock}, Requested: {requested[product.id]}",
            )

        if abs(product.price - item.unit_price) > tolerance:
            _report(
                product.id,
                PROBLEM_PRICE_MISMATCH,
                f"Price mismatch for {product.name}. Current: {product.price:.2f}, Provided: {item.unit_price:.2f}",
            )

    if problems:
        return SaleValidationResult(problems=problems)
    return SaleValidationResult(products=products)
