from __future__ import annotations

from ..extensions import db
from gymsales.time_utils import to_utc_z


class Client(db.Model):
    """
    Gym client (member). Read-only for the sales engine: a sale may reference
    a client and copies the client's name for display.
    """
    __tablename__ = "clients"
    __table_args__ = (
        db.UniqueConstraint("gym_id", "client_number", name="uq_clients_gym_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    gym_id = db.Column(db.Integer, db.ForeignKey("gyms.id"), nullable=False, index=True)
    client_number = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_summary_dict(self) -> dict:
        return {
            "id": self.id,
            "client_number": self.client_number,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
        }

    def to_dict(self) -> dict:
        data = self.to_summary_dict()
        data.update({
            "gym_id": self.gym_id,
            "created_at": to_utc_z(self.created_at),
        })
        return data
