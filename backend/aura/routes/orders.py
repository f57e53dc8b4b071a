# Overview: Flask API routes for orders; placement, customer queries and admin management.

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service
from ..services.errors import InsufficientStockError, OrderError, OrderNotFoundError
from ..decorators import require_admin, require_auth

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _order_error_response(e: OrderError):
    status = 404 if isinstance(e, OrderNotFoundError) else 400
    return jsonify({"error": str(e), "code": e.code, "details": e.details}), status


@orders_bp.post("")
@require_auth
def create_order():
    """
    Place an order for the signed-in user.

    Body: {items: [{product_id, variant_id?, quantity, source?, offer_id?,
    price_cents?, image?}], customer_details: {name, email, phone, address}}
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = order_service.place_order(
            user_id=g.current_user.id,
            items=payload.get("items"),
            customer_details=payload.get("customer_details"),
        )
        return jsonify({"order": order.to_dict()}), 201

    except InsufficientStockError as e:
        current_app.logger.warning("Order rejected for user %s: %s", g.current_user.id, e)
        return _order_error_response(e)
    except OrderError as e:
        return _order_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_my_orders():
    orders = order_service.list_orders_for_user(g.current_user.id)
    return jsonify({"orders": [o.to_dict() for o in orders]})


@orders_bp.get("/<int:order_id>")
@require_auth
def get_my_order(order_id: int):
    try:
        order = order_service.get_order(order_id, g.current_user.id)
    except OrderNotFoundError:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict()})


@orders_bp.get("/admin/all")
@require_auth
@require_admin
def list_all_orders():
    """
    Every order, newest first.

    Query params:
    - status: str (optional) - exact status; "All" means every status
    - search: str (optional) - matches customer name or email
    """
    orders = order_service.list_all_orders(
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({"orders": orders})


@orders_bp.put("/<int:order_id>/status")
@require_auth
@require_admin
def update_order_status(order_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        order = order_service.set_order_status(order_id, payload.get("status"))
        return jsonify({"order": order.to_dict()})

    except OrderError as e:
        return _order_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500
