"""
Sales Service - atomic sale creation and deletion

Create: validate payment method, customer and line items, allocate the sale
number, persist header and items, decrement tracked stock. Delete: restore
tracked stock from the persisted items and soft-delete the sale. Each runs
as one unit of work (see concurrency.run_in_transaction); nothing partial is
ever committed.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import (
    InsufficientStockError,
    SaleConflictError,
    SaleError,
    SaleNotFoundError,
    SaleValidationError,
)
from ..extensions import db
from ..models import Sale, SaleItem
from ..models.sales import PAYMENT_STATUSES
from .concurrency import lock_for_update, run_in_transaction
from .lookup_service import find_client, find_enabled_payment_method
from .sale_number_service import generate_sale_number
from .sale_schemas import CreateSaleRequest
from .sale_validation_service import validate_sale_items
from .stock_service import decrement_for_sale, restore_for_sale

__all__ = [
    "SaleError",
    "SaleNotFoundError",
    "SaleValidationError",
    "SaleConflictError",
    "InsufficientStockError",
    "create_sale",
    "delete_sale",
    "get_sale",
    "list_sales",
    "update_sale",
    "update_payment_status",
]

MAX_LIST_LIMIT = 200


def _require_payment_method(gym_id: int, payment_method_id: int):
    payment_method = find_enabled_payment_method(gym_id, payment_method_id)
    if payment_method is None:
        raise SaleNotFoundError(
            "Payment method not found or not enabled for this gym",
            details={"payment_method_id": payment_method_id},
        )
    return payment_method


def _require_client(gym_id: int, client_id: int):
    client = find_client(gym_id, client_id)
    if client is None:
        raise SaleNotFoundError("Customer not found", details={"customer_id": client_id})
    return client


def create_sale(
    gym_id: int,
    actor_id: int | None,
    request: CreateSaleRequest,
    *,
    on_date: date | None = None,
) -> Sale:
    """
    Create a sale with its line items and stock decrements in one transaction.

    Raises SaleNotFoundError (payment method / customer), SaleValidationError
    (every line-item problem at once) or SaleConflictError when the sale
    number still collides after all retries.
    """
    def _op() -> Sale:
        if request.payment_method_id is not None:
            _require_payment_method(gym_id, request.payment_method_id)

        customer_name = request.customer_name
        if request.customer_id is not None:
            client = _require_client(gym_id, request.customer_id)
            customer_name = customer_name or client.name

        validation = validate_sale_items(gym_id, request.items, lock=True)
        validation.raise_for_problems()

        sale_number = generate_sale_number(gym_id, on_date=on_date)
        total = sum((item.line_total for item in request.items), Decimal("0.00"))

        sale = Sale(
            gym_id=gym_id,
            sale_number=sale_number,
            total=total,
            customer_id=request.customer_id,
            customer_name=customer_name,
            payment_method_id=request.payment_method_id,
            payment_status=request.payment_status,
            notes=request.notes,
            file_ids=list(request.file_ids),
            created_by_user_id=actor_id,
            updated_by_user_id=actor_id,
        )
        for item in request.items:
            sale.items.append(SaleItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.line_total,
                created_by_user_id=actor_id,
            ))
        db.session.add(sale)

        try:
            db.session.flush()
        except IntegrityError as exc:
            raise SaleConflictError(
                f"Sale number {sale_number} was issued concurrently",
                details={"sale_number": sale_number},
            ) from exc

        decrement_for_sale(sale, validation.products, actor_id=actor_id)
        return sale

    sale = run_in_transaction(_op, retry_on=(SaleConflictError,))
    current_app.logger.info(
        "Created sale %s for gym %s (total %s, %d items)",
        sale.sale_number, gym_id, sale.total, len(sale.items),
    )
    return sale


def delete_sale(gym_id: int, sale_id: int, actor_id: int | None) -> Sale:
    """
    Soft-delete a sale and restore the stock its items took.

    An already deleted sale is "not found", so stock is restored once only.
    """
    def _op() -> Sale:
        sale = lock_for_update(
            Sale.active_for_gym(gym_id).filter(Sale.id == sale_id)
        ).first()
        if sale is None:
            raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})

        restore_for_sale(sale, actor_id=actor_id)
        sale.mark_deleted(actor_id)
        db.session.flush()
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info("Deleted sale %s for gym %s", sale.sale_number, gym_id)
    return sale


def get_sale(gym_id: int, sale_id: int) -> Sale:
    sale = Sale.active_for_gym(gym_id).filter(Sale.id == sale_id).first()
    if sale is None:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    gym_id: int,
    *,
    customer_name: str | None = None,
    payment_status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    min_total: Decimal | None = None,
    max_total: Decimal | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Sale], int]:
    """Active sales, newest first. end_date and the total bounds are inclusive."""
    query = Sale.active_for_gym(gym_id)

    if customer_name:
        query = query.filter(Sale.customer_name.ilike(f"%{customer_name}%"))
    if payment_status:
        if payment_status not in PAYMENT_STATUSES:
            raise SaleValidationError(f"invalid payment_status: {payment_status}")
        query = query.filter(Sale.payment_status == payment_status)
    if start_date:
        query = query.filter(Sale.sale_date >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Sale.sale_date < datetime.combine(end_date + timedelta(days=1), time.min))
    if min_total is not None:
        query = query.filter(Sale.total >= min_total)
    if max_total is not None:
        query = query.filter(Sale.total <= max_total)

    total = query.count()

    offset = max(offset, 0)
    limit = min(max(limit, 1), MAX_LIST_LIMIT)
    sales = (
        query.order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return sales, total


def update_sale(gym_id: int, sale_id: int, actor_id: int | None, patch: dict) -> Sale:
    """Plain field update (customer, notes, attachments, payment); items and stock are never touched."""
    sale = get_sale(gym_id, sale_id)

    if patch.get("payment_method_id") is not None:
        _require_payment_method(gym_id, patch["payment_method_id"])
    if patch.get("customer_id") is not None:
        client = _require_client(gym_id, patch["customer_id"])
        customer_changed = patch["customer_id"] != sale.customer_id
        if not patch.get("customer_name") and (customer_changed or not sale.customer_name):
            patch = {**patch, "customer_name": client.name}

    for key, value in patch.items():
        setattr(sale, key, value)
    sale.updated_by_user_id = actor_id

    db.session.commit()
    return sale


def update_payment_status(gym_id: int, sale_id: int, actor_id: int | None, payment_status: str) -> Sale:
    if payment_status not in PAYMENT_STATUSES:
        raise SaleValidationError(f"invalid payment_status: {payment_status}")
    return update_sale(gym_id, sale_id, actor_id, {"payment_status": payment_status})
