# Overview: Service-layer operations for orders; placement, queries and admin status changes.

"""
Order Service

Placement runs in one database transaction:

    BEGIN (IMMEDIATE on SQLite)
      reserve every cart line (conditional decrements)
      insert order + item snapshots
    COMMIT

Any OrderError rolls the whole transaction back, so a failed placement
leaves no order row and no stock change behind. Lock contention is retried
by run_with_retry; business failures are not.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Order, OrderItem, User, ORDER_STATUSES
from ..validation import escape_like, is_storable_id
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry
from .errors import (
    EmptyCartError,
    InvalidStatusError,
    MissingCustomerDetailsError,
    OrderNotFoundError,
)
from .reservation_service import CartLine, Reservation, parse_cart_line, reserve

CUSTOMER_DETAIL_FIELDS = ("name", "email", "phone", "address")
STATUS_FILTER_ALL = "All"


def parse_cart(items) -> list[CartLine]:
    if not items or not isinstance(items, list):
        raise EmptyCartError("Order must have at least one item")
    return [parse_cart_line(raw, i) for i, raw in enumerate(items)]


def validate_customer_details(customer_details) -> dict:
    """
    Returns a stripped copy with exactly the four snapshot fields.

    Every field must be a non-blank string; numbers or objects are rejected
    rather than stored as their repr.
    """
    if not isinstance(customer_details, dict):
        customer_details = {}

    cleaned = {}
    missing = []
    invalid = []
    for key in CUSTOMER_DETAIL_FIELDS:
        value = customer_details.get(key)
        if value is not None and not isinstance(value, str):
            invalid.append(key)
            continue
        value = (value or "").strip()
        if not value:
            missing.append(key)
        cleaned[key] = value

    if invalid:
        raise MissingCustomerDetailsError(
            f"Customer details must be text: {', '.join(invalid)}",
            details={"invalid": invalid},
        )
    if missing:
        raise MissingCustomerDetailsError(
            "Customer details (name, email, phone, address) are required",
            details={"missing": missing},
        )
    return cleaned


def _build_order(user_id: int, customer: dict, reservation: Reservation) -> Order:
    order = Order(
        user_id=user_id,
        customer_name=customer["name"],
        customer_email=customer["email"],
        customer_phone=customer["phone"],
        customer_address=customer["address"],
        total_cents=reservation.total_cents,
        status="Pending",
    )
    for reserved in reservation.lines:
        snapshot = reserved.item.snapshot(reserved.line)
        for portion in reserved.portions:
            order.items.append(OrderItem(
                unit_price_cents=portion.unit_price_cents,
                quantity=portion.quantity,
                **snapshot,
            ))
    return order


def place_order(user_id: int, items, customer_details) -> Order:
    """
    Validate, price and reserve a cart, then persist it as a Pending order.

    Raises EmptyCartError, MissingCustomerDetailsError, InvalidOrderItemError,
    ProductNotFoundError, VariantNotFoundError or InsufficientStockError.
    Nothing is persisted when any of them is raised.
    """
    lines = parse_cart(items)
    customer = validate_customer_details(customer_details)
    trust_client_price = bool(current_app.config.get("TRUST_CLIENT_OFFER_PRICE", False))

    def _op():
        # End whatever read transaction the request has open before taking
        # the write lock.
        db.session.commit()
        begin_write_transaction()

        reservation = reserve(lines, trust_client_price=trust_client_price)
        order = _build_order(user_id, customer, reservation)
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order %s placed by user %s: %d line(s), total_cents=%s",
        order.id, user_id, len(order.items), order.total_cents,
    )
    return order


def set_order_status(order_id: int, new_status: str) -> Order:
    """
    Admin status update.

    Any of the five statuses may replace any other; only the value is
    validated.
    """
    if new_status not in ORDER_STATUSES:
        raise InvalidStatusError(
            "Invalid status",
            details={"status": new_status, "allowed": list(ORDER_STATUSES)},
        )

    if not is_storable_id(order_id):
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise OrderNotFoundError("Order not found", details={"order_id": order_id})

        previous = order.status
        order.status = new_status
        db.session.commit()
        current_app.logger.info("Order %s status %s -> %s", order.id, previous, new_status)
        return order

    return run_with_retry(_op)


def list_orders_for_user(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order(order_id: int, user_id: int) -> Order:
    """
    Ownership-scoped lookup.

    An order that belongs to another user raises OrderNotFoundError exactly
    like a missing one, so callers cannot discover other users' order ids.
    """
    if not is_storable_id(order_id):
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    order = (
        db.session.query(Order)
        .filter(Order.id == order_id, Order.user_id == user_id)
        .first()
    )
    if order is None:
        raise OrderNotFoundError("Order not found", details={"order_id": order_id})
    return order


def list_all_orders(status: str | None = None, search: str | None = None) -> list[dict]:
    """
    Admin listing with optional status equality filter and case-insensitive
    substring search over the customer name and email snapshot.

    Each entry carries the owning user's current name/email, falling back to
    the snapshot when the account has none.
    """
    query = db.session.query(Order)

    if status and status != STATUS_FILTER_ALL:
        query = query.filter(Order.status == status)

    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(or_(
            Order.customer_name.ilike(pattern, escape="\\"),
            Order.customer_email.ilike(pattern, escape="\\"),
        ))

    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    user_ids = {o.user_id for o in orders}
    users = {}
    if user_ids:
        users = {u.id: u for u in db.session.query(User).filter(User.id.in_(user_ids)).all()}

    results = []
    for order in orders:
        user = users.get(order.user_id)
        data = order.to_dict()
        data["user_email"] = (user.email if user else None) or order.customer_email
        data["user_name"] = (user.name if user else None) or order.customer_name
        results.append(data)
    return results
