from __future__ import annotations

from ..extensions import db
from aura.time_utils import to_utc_z, utcnow

PRODUCT_CATEGORIES = ("Fine Fragrance", "Home Collection", "Accessories")

VARIANT_TYPES = (
    "EDP",
    "Extrait",
    "Cologne",
    "Roll-on",
    "Candle",
    "Incense",
    "Diffuser",
    "Backflow Stand",
    "Backflow",
    "Car Perfume",
    "Dhoop Cones",
    "Dhoop Sticks",
    "Floor Cleaner",
    "Air Freshner",
    "Pain Oil",
    "Essential Oil",
    "Diffuser Oil",
)


class Product(db.Model):
    """
    Catalog product. Price and stock live on its variants.

    INVARIANT: a product has at least one variant. Enforced where products
    are written (catalog seeding), not by the schema.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_active", "category", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(64), nullable=False)
    notes = db.Column(db.JSON, nullable=False, default=list)
    image = db.Column(db.String(512), nullable=False, default="")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    variants = db.relationship(
        "ProductVariant",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    def find_variant(self, variant_id: int) -> "ProductVariant | None":
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "notes": list(self.notes or []),
            "image": self.image,
            "is_active": self.is_active,
            "variants": [v.to_dict() for v in self.variants],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductVariant(db.Model):
    """A sellable size/format of a product with its own price and stock."""
    __tablename__ = "product_variants"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_product_variants_stock_nonnegative"),
        db.CheckConstraint("price_cents >= 0", name="ck_product_variants_price_nonnegative"),
        db.Index("ix_product_variants_sku", "sku"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(32), nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    # Mutated only through conditional UPDATEs (see reservation_service)
    stock = db.Column(db.Integer, nullable=False, default=0)
    sku = db.Column(db.String(64), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "type": self.type,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "sku": self.sku,
        }


class InventoryOffer(db.Model):
    """
    Standalone sellable item with its own quantity pool and promotional offer.

    Not tied to a catalog product; used as the fallback source when an order
    line does not resolve to a catalog product.
    """
    __tablename__ = "inventory_offers"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_offers_quantity_nonnegative"),
        db.CheckConstraint("mrp_cents >= 0", name="ck_inventory_offers_mrp_nonnegative"),
        db.Index("ix_inventory_offers_category_active", "category", "is_active"),
        db.Index("ix_inventory_offers_item", "item"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(128), nullable=False)
    item = db.Column(db.String(255), nullable=False)
    size = db.Column(db.String(64), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    mrp_cents = db.Column(db.Integer, nullable=False)
    # e.g. "180 for 2", "50%", "399 Combo" (see pricing_service)
    offer = db.Column(db.String(128), nullable=False, default="")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def display_variant_name(self) -> str:
        return f"{self.size} - {self.category}"

    def __repr__(self) -> str:
        return f"<InventoryOffer id={self.id} item={self.item!r} size={self.size!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "item": self.item,
            "size": self.size,
            "quantity": self.quantity,
            "mrp_cents": self.mrp_cents,
            "offer": self.offer,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


OFFER_TYPES = ("bundle", "discount")

offer_products = db.Table(
    "offer_products",
    db.Column("offer_id", db.Integer, db.ForeignKey("offers.id", ondelete="CASCADE"), primary_key=True),
    db.Column("product_id", db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)


class Offer(db.Model):
    """
    Storefront campaign offer (e.g. "Monsoon bundle") featuring catalog products.

    Display only: order pricing never reads campaign offers.
    """
    __tablename__ = "offers"
    __table_args__ = (
        db.CheckConstraint("type IN ('bundle', 'discount')", name="ck_offers_type"),
        db.CheckConstraint(
            "discount_percent IS NULL OR (discount_percent >= 0 AND discount_percent <= 100)",
            name="ck_offers_discount_percent_range",
        ),
        db.Index("ix_offers_active_dates", "is_active", "start_date", "end_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    discount_percent = db.Column(db.Integer, nullable=True)

    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    products = db.relationship(
        "Product",
        secondary=offer_products,
        lazy="selectin",
        order_by="Product.id",
    )

    def __repr__(self) -> str:
        return f"<Offer id={self.id} title={self.title!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "discount_percent": self.discount_percent,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
            "products": [p.to_dict() for p in self.products],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
