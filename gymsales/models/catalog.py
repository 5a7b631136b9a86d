from __future__ import annotations

from ..extensions import db
from gymsales.time_utils import to_utc_z

TRACK_INVENTORY_NONE = "none"
TRACK_INVENTORY_MODES = ("none", "simple", "advanced", "capacity")

PRODUCT_STATUS_ACTIVE = "active"
PRODUCT_STATUS_INACTIVE = "inactive"

STOCK_MOVEMENT_TYPES = ("sale", "return", "manual_entry", "adjustment", "initial_stock")


def format_money(value) -> str | None:
    if value is None:
        return None
    return f"{value:.2f}"


class ProductCategory(db.Model):
    __tablename__ = "product_categories"
    __table_args__ = (
        db.UniqueConstraint("gym_id", "name", name="uq_product_categories_gym_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    color = db.Column(db.String(16), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
        }


class Product(db.Model):
    """
    Product or service sold at a gym.

    MULTI-TENANT: Products are scoped to gyms via gym_id.

    STOCK: `stock` is authoritative only when `track_inventory` is not "none"
    and the value is non-null. Services (towel rental, training sessions)
    use track_inventory="none" and are never touched by stock mutations.

    Products are soft-deleted (deleted_at); deleted products are invisible to
    catalog lookups and cannot be sold.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_gym_status", "gym_id", "status"),
        db.Index("ix_products_gym_deleted", "gym_id", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_id = db.Column(db.String(64), nullable=True)

    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=True)
    track_inventory = db.Column(db.String(16), nullable=False, default=TRACK_INVENTORY_NONE)
    status = db.Column(db.String(16), nullable=False, default=PRODUCT_STATUS_ACTIVE)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    updated_by_user_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    category = db.relationship("ProductCategory", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def tracks_inventory(self) -> bool:
        return self.track_inventory != TRACK_INVENTORY_NONE and self.stock is not None

    @property
    def is_active(self) -> bool:
        return self.status == PRODUCT_STATUS_ACTIVE and self.deleted_at is None

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} gym_id={self.gym_id} stock={self.stock}>"

    def to_summary_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image_id": self.image_id,
            "category": self.category.to_dict() if self.category else None,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "gym_id": self.gym_id,
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "image_id": self.image_id,
            "price": format_money(self.price),
            "stock": self.stock,
            "track_inventory": self.track_inventory,
            "status": self.status,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of every stock change made to a tracked product.

    quantity is signed: negative for sales, positive for returns/restores.
    Written in the same transaction as the stock update it describes.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    type = db.Column(db.String(32), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.String(255), nullable=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "gym_id": self.gym_id,
            "product_id": self.product_id,
            "sale_id": self.sale_id,
            "type": self.type,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
