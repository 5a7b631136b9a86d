# Overview: Flask API routes for sales; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_gym_context
from ..services import sales_service
from ..services.sale_schemas import (
    parse_create_sale_request,
    parse_optional_money,
    parse_payment_status,
    parse_sale_update,
)
from ..services.sales_service import (
    SaleError,
    SaleNotFoundError,
    SaleConflictError,
)
from gymsales.time_utils import parse_iso_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def sale_error_response(e: SaleError):
    if isinstance(e, SaleNotFoundError):
        status = 404
    elif isinstance(e, SaleConflictError):
        status = 409
    else:
        # SaleValidationError and any other business rule failure
        status = 400
    return jsonify({"error": str(e), "details": e.details}), status


@sales_bp.post("")
@require_gym_context
def create_sale_route():
    """
    Create a sale: validates items, allocates the sale number and
    decrements stock atomically.
    """
    try:
        sale_request = parse_create_sale_request(request.get_json(silent=True))
        sale = sales_service.create_sale(g.gym_id, g.user_id, sale_request)
        return jsonify({"sale": sale.to_dict(include_items=True)}), 201

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_gym_context
def list_sales_route():
    """
    List active sales of the caller's gym.

    Query params: customer_name, payment_status, start_date, end_date
    (YYYY-MM-DD, inclusive), min_total, max_total (inclusive), limit
    (max 200), offset.
    """
    try:
        sales, total = sales_service.list_sales(
            g.gym_id,
            customer_name=request.args.get("customer_name"),
            payment_status=request.args.get("payment_status"),
            start_date=parse_iso_date(request.args.get("start_date")),
            end_date=parse_iso_date(request.args.get("end_date")),
            min_total=parse_optional_money(request.args.get("min_total"), "min_total"),
            max_total=parse_optional_money(request.args.get("max_total"), "max_total"),
            limit=request.args.get("limit", 50, type=int),
            offset=request.args.get("offset", 0, type=int),
        )
    except ValueError:
        return jsonify({"error": "invalid date"}), 400
    except SaleError as e:
        return sale_error_response(e)

    return jsonify({"items": [s.to_dict() for s in sales], "count": total}), 200


@sales_bp.get("/<int:sale_id>")
@require_gym_context
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.gym_id, sale_id)
    except SaleError as e:
        return sale_error_response(e)
    return jsonify({"sale": sale.to_dict(include_items=True)}), 200


@sales_bp.put("/<int:sale_id>")
@require_gym_context
def update_sale_route(sale_id: int):
    try:
        patch = parse_sale_update(request.get_json(silent=True))
        sale = sales_service.update_sale(g.gym_id, sale_id, g.user_id, patch)
        return jsonify({"sale": sale.to_dict(include_items=True)}), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.put("/<int:sale_id>/payment-status")
@require_gym_context
def update_payment_status_route(sale_id: int):
    try:
        data = request.get_json(silent=True) or {}
        payment_status = parse_payment_status(data.get("payment_status"))
        sale = sales_service.update_payment_status(g.gym_id, sale_id, g.user_id, payment_status)
        return jsonify({"sale": sale.to_dict()}), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update payment status")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_gym_context
def delete_sale_route(sale_id: int):
    """Soft-delete a sale and restore the stock of its tracked products."""
    try:
        sale = sales_service.delete_sale(g.gym_id, sale_id, g.user_id)
        return jsonify({"sale": sale.to_dict()}), 200

    except SaleError as e:
        return sale_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error"}), 500
