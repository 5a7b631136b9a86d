# Overview: Applies stock deltas to tracked products and records each change as a StockMovement.

from __future__ import annotations

from sqlalchemy import update

from ..errors import InsufficientStockError
from ..extensions import db
from ..models import Product, Sale, StockMovement
from ..models.catalog import TRACK_INVENTORY_NONE
from .catalog_service import find_product, find_products


def apply_stock_delta(
    product: Product,
    delta: int,
    *,
    actor_id: int | None,
    movement_type: str,
    sale_id: int | None = None,
    notes: str | None = None,
) -> StockMovement | None:
    """
    Add delta (signed) to a tracked product's stock.

    Untracked products (track_inventory == "none" or stock is NULL) are left
    untouched and None is returned. The update is a single guarded statement,
    so stock can never go below zero even if the caller's copy is stale.
    """
    if not product.tracks_inventory:
        return None

    previous_stock = product.stock
    stmt = (
        update(Product)
        .where(
            Product.id == product.id,
            Product.stock.isnot(None),
            Product.stock + delta >= 0,
        )
        .values(
            stock=Product.stock + delta,
            updated_by_user_id=actor_id,
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}",
            details={"product_id": product.id, "available": previous_stock, "delta": delta},
        )
    db.session.refresh(product)

    movement = StockMovement(
        gym_id=product.gym_id,
        product_id=product.id,
        sale_id=sale_id,
        type=movement_type,
        quantity=delta,
        previous_stock=previous_stock,
        new_stock=product.stock,
        notes=notes,
        created_by_user_id=actor_id,
    )
    db.session.add(movement)
    return movement


def decrement_for_sale(sale: Sale, products: dict[int, Product], *, actor_id: int | None) -> list[StockMovement]:
    """One decrement per line item of a freshly persisted sale."""
    movements = []
    for item in sale.items:
        movement = apply_stock_delta(
            products[item.product_id],
            -item.quantity,
            actor_id=actor_id,
            movement_type="sale",
            sale_id=sale.id,
            notes=f"Sale {sale.sale_number}",
        )
        if movement is not None:
            movements.append(movement)
    return movements


def restore_for_sale(sale: Sale, *, actor_id: int | None) -> list[StockMovement]:
    """
    Give back the stock taken by a sale, using the persisted line items.

    Products soft-deleted since the sale still get their stock back; products
    that stopped tracking inventory are skipped.
    """
    products = find_products(
        sale.gym_id,
        [item.product_id for item in sale.items],
        include_deleted=True,
        lock=True,
    )
    movements = []
    for item in sale.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        movement = apply_stock_delta(
            product,
            item.quantity,
            actor_id=actor_id,
            movement_type="return",
            sale_id=sale.id,
            notes=f"Deleted sale {sale.sale_number}",
        )
        if movement is not None:
            movements.append(movement)
    return movements


def check_stock_availability(gym_id: int, product_id: int, quantity: int) -> dict:
    product = find_product(gym_id, product_id)
    if product is None:
        return {"available": False, "current_stock": None}

    if product.track_inventory == TRACK_INVENTORY_NONE:
        return {"available": True, "current_stock": None}

    return {
        "available": product.stock is not None and product.stock >= quantity,
        "current_stock": product.stock,
    }


def get_low_stock_products(gym_id: int, threshold: int = 10) -> list[Product]:
    return (
        db.session.query(Product)
        .filter(
            Product.gym_id == gym_id,
            Product.deleted_at.is_(None),
            Product.track_inventory != TRACK_INVENTORY_NONE,
            Product.stock.isnot(None),
            Product.stock <= threshold,
        )
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )
