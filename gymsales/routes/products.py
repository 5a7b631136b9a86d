# Overview: Flask API routes for stock availability and low-stock lookups.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_gym_context
from ..services import stock_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("/<int:product_id>/stock-availability")
@require_gym_context
def stock_availability_route(product_id: int):
    quantity = request.args.get("quantity", 1, type=int)
    if quantity is None or quantity <= 0:
        return jsonify({"error": "quantity must be greater than 0"}), 400

    result = stock_service.check_stock_availability(g.gym_id, product_id, quantity)
    return jsonify(result), 200


@products_bp.get("/low-stock")
@require_gym_context
def low_stock_route():
    threshold = request.args.get(
        "threshold", current_app.config.get("LOW_STOCK_THRESHOLD", 10), type=int
    )
    products = stock_service.get_low_stock_products(g.gym_id, threshold)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200
