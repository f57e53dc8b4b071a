# Overview: Service-layer operations for the product catalog; read queries and seeding.

"""
Catalog Service

Storefront reads are public and only see active products. Prices and stock
are per variant; stock is changed exclusively by reservation_service.
"""
from __future__ import annotations

from sqlalchemy import String, cast, or_

from ..extensions import db
from ..models import Product, ProductVariant, offer_products, PRODUCT_CATEGORIES, VARIANT_TYPES
from ..validation import MAX_PRICE_CENTS, MAX_QUANTITY, ValidationError, coerce_int, escape_like, is_storable_id

CATEGORY_FILTER_ALL = "All"


def list_products(category: str | None = None, search: str | None = None) -> list[Product]:
    """
    Active products, newest first.

    category: exact match; "All" or empty means no filter.
    search: case-insensitive substring over name, description and notes.
    """
    query = db.session.query(Product).filter(Product.is_active.is_(True))

    if category and category != CATEGORY_FILTER_ALL:
        query = query.filter(Product.category == category)

    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(or_(
            Product.name.ilike(pattern, escape="\\"),
            Product.description.ilike(pattern, escape="\\"),
            # notes is a JSON list; match against its serialized text
            cast(Product.notes, String).ilike(pattern, escape="\\"),
        ))

    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_product(product_id: int) -> Product | None:
    if not is_storable_id(product_id):
        return None
    return db.session.get(Product, product_id)


def _require_text(raw: dict, key: str, where: str) -> str:
    value = raw.get(key)
    value = str(value).strip() if value is not None else ""
    if not value:
        raise ValidationError(f"{where}: {key} is required")
    return value


def _build_variant(raw: dict, where: str) -> ProductVariant:
    variant_type = _require_text(raw, "type", where)
    if variant_type not in VARIANT_TYPES:
        raise ValidationError(f"{where}: unknown variant type {variant_type!r}")

    price_cents = coerce_int(raw.get("price_cents"), f"{where}.price_cents")
    if not 0 <= price_cents <= MAX_PRICE_CENTS:
        raise ValidationError(f"{where}: price_cents out of range")

    stock = coerce_int(raw.get("stock", 0), f"{where}.stock")
    if not 0 <= stock <= MAX_QUANTITY:
        raise ValidationError(f"{where}: stock out of range")

    return ProductVariant(
        name=_require_text(raw, "name", where),
        type=variant_type,
        price_cents=price_cents,
        stock=stock,
        sku=_require_text(raw, "sku", where),
    )


def build_product(raw: dict, index: int = 0) -> Product:
    """
    Build (unsaved) Product + variants from a seed record.

    Raises ValidationError for missing fields, unknown enums, out-of-range
    numbers, or a product without variants.
    """
    where = f"products[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{where} must be an object")

    category = _require_text(raw, "category", where)
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError(f"{where}: unknown category {category!r}")

    raw_variants = raw.get("variants") or []
    if not isinstance(raw_variants, list) or not raw_variants:
        raise ValidationError(f"{where}: at least one variant is required")

    notes = raw.get("notes") or []
    if not isinstance(notes, list):
        raise ValidationError(f"{where}: notes must be a list")

    product = Product(
        name=_require_text(raw, "name", where),
        description=str(raw.get("description") or "").strip(),
        category=category,
        notes=[str(n) for n in notes],
        image=str(raw.get("image") or ""),
        is_active=bool(raw.get("is_active", True)),
    )
    for j, raw_variant in enumerate(raw_variants):
        if not isinstance(raw_variant, dict):
            raise ValidationError(f"{where}.variants[{j}] must be an object")
        product.variants.append(_build_variant(raw_variant, f"{where}.variants[{j}]"))
    return product


def seed_products(records: list[dict], replace: bool = False) -> int:
    """
    Insert products from seed records in one transaction.

    replace=True deletes the existing catalog first. Returns the number of
    products inserted. Nothing is written if any record is invalid.
    """
    if not isinstance(records, list):
        raise ValidationError("Seed file must contain a list of products")

    products = [build_product(raw, i) for i, raw in enumerate(records)]

    if replace:
        db.session.execute(offer_products.delete())
        db.session.query(ProductVariant).delete(synchronize_session=False)
        db.session.query(Product).delete(synchronize_session=False)

    db.session.add_all(products)
    db.session.commit()
    return len(products)
