from __future__ import annotations

from ..extensions import db


class PaymentMethod(db.Model):
    """
    Payment method configured for a gym (cash, card, transfer...).

    A sale may only reference a method of its own gym that is enabled and
    not soft-deleted.
    """
    __tablename__ = "payment_methods"
    __table_args__ = (
        db.UniqueConstraint("gym_id", "code", name="uq_payment_methods_gym_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    code = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
        }
