from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..extensions import db
from gymsales.time_utils import to_utc_z, utcnow
from .catalog import format_money

PAYMENT_STATUS_UNPAID = "unpaid"
PAYMENT_STATUS_PAID = "paid"
PAYMENT_STATUSES = (PAYMENT_STATUS_UNPAID, PAYMENT_STATUS_PAID)


@dataclass(frozen=True)
class SaleActive:
    """Lifecycle state of a sale that has not been deleted."""

    name: str = "active"


@dataclass(frozen=True)
class SaleDeleted:
    """Lifecycle state of a soft-deleted sale."""

    at: datetime
    by: int | None
    name: str = "deleted"


class Sale(db.Model):
    """
    Sale header.

    MULTI-TENANT: Sales are scoped to gyms via gym_id.

    NUMBERING: sale_number is "<YYYYMMDD><NNNN>" and is unique per gym among
    non-deleted sales (partial unique index). Deleted sales never block a
    number.

    LIFECYCLE: sales are soft-deleted, never removed. Use `lifecycle` to read
    the state and `active_for_gym()` to query; do not filter on deleted_at by
    hand.

    INVARIANT: total == sum(item.total for item in items)
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index(
            "uq_sales_gym_number_active",
            "gym_id",
            "sale_number",
            unique=True,
            sqlite_where=db.text("deleted_at IS NULL"),
            postgresql_where=db.text("deleted_at IS NULL"),
        ),
        db.Index("ix_sales_gym_deleted_date", "gym_id", "deleted_at", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)

    sale_number = db.Column(db.String(32), nullable=False, index=True)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)

    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id"), nullable=True, index=True)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_UNPAID, index=True)

    notes = db.Column(db.Text, nullable=True)
    file_ids = db.Column(db.JSON, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by_user_id = db.Column(db.Integer, nullable=True)
    updated_by_user_id = db.Column(db.Integer, nullable=True)

    # Soft delete
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    deleted_by_user_id = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy=True,
    )
    customer = db.relationship("Client")
    payment_method = db.relationship("PaymentMethod")
    __mapper_args__ = {"version_id_col": version_id}

    @classmethod
    def active_for_gym(cls, gym_id: int):
        """Query of the gym's non-deleted sales."""
        return db.session.query(cls).filter(cls.gym_id == gym_id, cls.deleted_at.is_(None))

    @property
    def lifecycle(self) -> SaleActive | SaleDeleted:
        if self.deleted_at is None:
            return SaleActive()
        return SaleDeleted(at=self.deleted_at, by=self.deleted_by_user_id)

    def mark_deleted(self, actor_id: int | None, at: datetime | None = None) -> None:
        if self.deleted_at is not None:
            raise ValueError("sale already deleted")
        self.deleted_at = at or utcnow()
        self.deleted_by_user_id = actor_id
        self.updated_by_user_id = actor_id

    def __repr__(self) -> str:
        return f"<Sale id={self.id} gym_id={self.gym_id} number={self.sale_number!r} total={self.total}>"

    def to_dict(self, include_items: bool = False) -> dict:
        lifecycle = self.lifecycle
        data = {
            "id": self.id,
            "gym_id": self.gym_id,
            "sale_number": self.sale_number,
            "total": format_money(self.total),
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "payment_method_id": self.payment_method_id,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "file_ids": list(self.file_ids or []),
            "sale_date": to_utc_z(self.sale_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "state": lifecycle.name,
            "deleted_at": to_utc_z(lifecycle.at) if isinstance(lifecycle, SaleDeleted) else None,
            "deleted_by_user_id": lifecycle.by if isinstance(lifecycle, SaleDeleted) else None,
            "version_id": self.version_id,
            "item_count": len(self.items),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
            data["customer"] = self.customer.to_summary_dict() if self.customer else None
            data["payment_method"] = self.payment_method.to_dict() if self.payment_method else None
        return data


class SaleItem(db.Model):
    """
    Line item of a sale. Owned by its sale and never mutated on its own;
    unit_price is the price at the time of sale.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_money(self.unit_price),
            "total": format_money(self.total),
            "created_at": to_utc_z(self.created_at),
            "product": self.product.to_summary_dict() if self.product else None,
        }
