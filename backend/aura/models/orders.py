from __future__ import annotations

from ..extensions import db
from aura.time_utils import to_utc_z, utcnow

ORDER_STATUSES = ("Pending", "Processing", "Shipped", "Delivered", "Cancelled")


class Order(db.Model):
    """
    Placed order.

    Customer details and items are snapshots taken at placement time; they do
    not follow later changes to the user profile or the catalog.

    INVARIANT: total_cents == sum(item.unit_price_cents * item.quantity)
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_status", "status"),
        db.CheckConstraint("total_cents >= 0", name="ck_orders_total_nonnegative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)

    total_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="Pending")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def customer_details(self) -> dict:
        return {
            "name": self.customer_name,
            "email": self.customer_email,
            "phone": self.customer_phone,
            "address": self.customer_address,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "customer_details": self.customer_details(),
            "items": [item.to_dict() for item in self.items],
            "total_cents": self.total_cents,
            "status": self.status,
            "date": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderItem(db.Model):
    """Immutable priced snapshot of a variant or inventory offer."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_order_items_price_nonnegative"),
        db.CheckConstraint("source IN ('catalog', 'offer')", name="ck_order_items_source"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    source = db.Column(db.String(16), nullable=False)
    # Plain ids, not foreign keys: the snapshot outlives catalog edits
    product_id = db.Column(db.Integer, nullable=True)
    variant_id = db.Column(db.Integer, nullable=True)
    offer_id = db.Column(db.Integer, nullable=True)

    product_name = db.Column(db.String(255), nullable=False)
    variant_name = db.Column(db.String(255), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    image = db.Column(db.String(512), nullable=False, default="")

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "offer_id": self.offer_id,
            "product_name": self.product_name,
            "variant_name": self.variant_name,
            "unit_price_cents": self.unit_price_cents,
            "quantity": self.quantity,
            "line_total_cents": self.line_total_cents,
            "image": self.image,
        }
