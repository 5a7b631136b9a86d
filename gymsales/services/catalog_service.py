# Overview: Tenant-scoped catalog lookups used by the sales engine.

from __future__ import annotations

from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update


def _catalog_query(gym_id: int, *, include_deleted: bool = False):
    query = db.session.query(Product).filter(Product.gym_id == gym_id)
    if not include_deleted:
        query = query.filter(Product.deleted_at.is_(None))
    return query


def find_product(gym_id: int, product_id: int, *, include_deleted: bool = False, lock: bool = False) -> Product | None:
    """Product by id within the gym's catalog, or None."""
    query = _catalog_query(gym_id, include_deleted=include_deleted).filter(Product.id == product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def find_products(
    gym_id: int,
    product_ids,
    *,
    include_deleted: bool = False,
    lock: bool = False,
) -> dict[int, Product]:
    """
    Products keyed by id. Missing ids are simply absent from the result.

    With lock=True rows are locked in ascending id order so that two
    transactions touching the same products cannot deadlock each other.
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    query = _catalog_query(gym_id, include_deleted=include_deleted).filter(Product.id.in_(ids)).order_by(Product.id.asc())
    if lock:
        query = lock_for_update(query)
    return {product.id: product for product in query.all()}
