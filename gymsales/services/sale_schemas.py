# Overview: Parses JSON request bodies for the sales routes into typed requests.

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from ..errors import SaleValidationError
from ..models.sales import PAYMENT_STATUSES, PAYMENT_STATUS_UNPAID

CENT = Decimal("0.01")
MAX_ITEMS_PER_SALE = 200
MAX_QUANTITY = 100_000
# Column bounds: unit prices are Numeric(10,2), line and sale totals Numeric(12,2).
MAX_UNIT_PRICE = Decimal("99999999.99")
MAX_TOTAL = Decimal("9999999999.99")


@dataclass(frozen=True)
class SaleItemRequest:
    product_id: int
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CreateSaleRequest:
    items: list[SaleItemRequest]
    customer_id: int | None = None
    customer_name: str | None = None
    payment_method_id: int | None = None
    notes: str | None = None
    file_ids: list[str] = field(default_factory=list)
    payment_status: str = PAYMENT_STATUS_UNPAID


def _to_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise SaleValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise SaleValidationError(f"{name} must be an integer")


def _to_money(value: Any, name: str, *, maximum: Decimal = MAX_UNIT_PRICE) -> Decimal:
    if value is None or isinstance(value, bool):
        raise SaleValidationError(f"{name} is required")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise SaleValidationError(f"{name} must be a number")
    if not amount.is_finite() or amount < 0:
        raise SaleValidationError(f"{name} must be a non-negative number")
    if amount > maximum:
        raise SaleValidationError(f"{name} must not exceed {maximum}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise SaleValidationError(f"{name} must be a number")


def parse_optional_money(value: Any, name: str) -> Decimal | None:
    """Money query filter; blank means no filter."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _to_money(value, name, maximum=MAX_TOTAL)


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def _to_file_ids(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SaleValidationError("file_ids must be a list")
    return [str(file_id) for file_id in value]


def parse_payment_status(value: Any) -> str:
    if value not in PAYMENT_STATUSES:
        raise SaleValidationError(
            "payment_status must be one of: " + ", ".join(PAYMENT_STATUSES)
        )
    return value


def parse_item(raw: Any, index: int) -> SaleItemRequest:
    if not isinstance(raw, dict):
        raise SaleValidationError(f"items[{index}] must be an object")
    product_id = _to_int(raw.get("product_id"), f"items[{index}].product_id")
    if product_id is None:
        raise SaleValidationError(f"items[{index}].product_id is required")
    quantity = _to_int(raw.get("quantity"), f"items[{index}].quantity")
    if quantity is None or quantity <= 0:
        raise SaleValidationError(f"items[{index}].quantity must be greater than 0")
    if quantity > MAX_QUANTITY:
        raise SaleValidationError(f"items[{index}].quantity must not exceed {MAX_QUANTITY}")
    unit_price = _to_money(raw.get("unit_price"), f"items[{index}].unit_price")
    return SaleItemRequest(product_id=product_id, quantity=quantity, unit_price=unit_price)


def parse_create_sale_request(data: dict | None) -> CreateSaleRequest:
    data = data or {}
    raw_items = data.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise SaleValidationError("items must be a non-empty list")
    if len(raw_items) > MAX_ITEMS_PER_SALE:
        raise SaleValidationError(f"a sale may have at most {MAX_ITEMS_PER_SALE} items")

    items = [parse_item(raw, i) for i, raw in enumerate(raw_items)]
    if sum(item.line_total for item in items) > MAX_TOTAL:
        raise SaleValidationError(f"sale total must not exceed {MAX_TOTAL}")

    payment_status = data.get("payment_status")
    return CreateSaleRequest(
        items=items,
        customer_id=_to_int(data.get("customer_id"), "customer_id"),
        customer_name=_to_text(data.get("customer_name")),
        payment_method_id=_to_int(data.get("payment_method_id"), "payment_method_id"),
        notes=_to_text(data.get("notes")),
        file_ids=_to_file_ids(data.get("file_ids")),
        payment_status=parse_payment_status(payment_status) if payment_status is not None else PAYMENT_STATUS_UNPAID,
    )


SALE_UPDATE_FIELDS = {"customer_id", "customer_name", "notes", "file_ids", "payment_status", "payment_method_id"}


def parse_sale_update(data: dict | None) -> dict:
    """Allowlisted, coerced patch for update_sale. Unknown keys are rejected."""
    data = data or {}
    unknown = set(data) - SALE_UPDATE_FIELDS
    if unknown:
        raise SaleValidationError(
            "Unsupported fields: " + ", ".join(sorted(unknown)),
            details={"fields": sorted(unknown)},
        )

    patch: dict[str, Any] = {}
    if "customer_id" in data:
        patch["customer_id"] = _to_int(data["customer_id"], "customer_id")
    if "customer_name" in data:
        patch["customer_name"] = _to_text(data["customer_name"])
    if "notes" in data:
        patch["notes"] = _to_text(data["notes"])
    if "file_ids" in data:
        patch["file_ids"] = _to_file_ids(data["file_ids"])
    if "payment_status" in data:
        patch["payment_status"] = parse_payment_status(data["payment_status"])
    if "payment_method_id" in data:
        patch["payment_method_id"] = _to_int(data["payment_method_id"], "payment_method_id")
    return patch
