# Overview: Read-only lookups for payment methods and clients referenced by sales.

from __future__ import annotations

from ..extensions import db
from ..models import Client, PaymentMethod


def find_enabled_payment_method(gym_id: int, payment_method_id: int) -> PaymentMethod | None:
    return (
        db.session.query(PaymentMethod)
        .filter(
            PaymentMethod.id == payment_method_id,
            PaymentMethod.gym_id == gym_id,
            PaymentMethod.enabled.is_(True),
            PaymentMethod.deleted_at.is_(None),
        )
        .first()
    )


def find_client(gym_id: int, client_id: int) -> Client | None:
    return (
        db.session.query(Client)
        .filter(
            Client.id == client_id,
            Client.gym_id == gym_id,
            Client.deleted_at.is_(None),
        )
        .first()
    )
