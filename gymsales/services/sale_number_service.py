# Overview: Date-prefixed, per-gym sequential sale numbers.

from __future__ import annotations

from datetime import date

from ..errors import SaleConflictError
from ..models import Sale
from gymsales.time_utils import utc_today

SEQUENCE_DIGITS = 4
MAX_SEQUENCE = 10 ** SEQUENCE_DIGITS - 1


def sale_number_prefix(on_date: date) -> str:
    return on_date.strftime("%Y%m%d")


def format_sale_number(on_date: date, sequence: int) -> str:
    return f"{sale_number_prefix(on_date)}{sequence:0{SEQUENCE_DIGITS}d}"


def generate_sale_number(gym_id: int, on_date: date | None = None) -> str:
    """
    Next sale number for the gym and day, e.g. "202405010001".

    Reads the greatest non-deleted number issued today and adds one. The read
    is not a reservation: callers must insert inside the same transaction and
    rely on the (gym_id, sale_number) unique index to reject a racing insert.
    """
    on_date = on_date or utc_today()
    prefix = sale_number_prefix(on_date)

    last_number = (
        Sale.active_for_gym(gym_id)
        .filter(Sale.sale_number.like(f"{prefix}%"))
        .order_by(Sale.sale_number.desc())
        .with_entities(Sale.sale_number)
        .limit(1)
        .scalar()
    )

    sequence = 1
    if last_number:
        sequence = int(last_number[-SEQUENCE_DIGITS:]) + 1

    if sequence > MAX_SEQUENCE:
        raise SaleConflictError(
            "Daily sale number sequence exhausted",
            details={"gym_id": gym_id, "date": on_date.isoformat()},
        )

    return format_sale_number(on_date, sequence)
