# Overview: Service-layer operations for inventory and campaign offers; listing, admin edits and seeding.

"""
Offer Service

Inventory offers are the secondary sellable source: standalone items with
their own quantity pool and a promotional offer string. Orders reserve them
through reservation_service; this module covers everything else.

Campaign offers are storefront promotions that feature catalog products.
They are display-only and never affect what an order is charged.
"""
from __future__ import annotations

from ..extensions import db
from ..models import InventoryOffer, Offer, Product, OFFER_TYPES
from ..validation import (
    MAX_PRICE_CENTS,
    MAX_QUANTITY,
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    enforce_rules_inventory_offer,
    enforce_rules_offer,
    is_storable_id,
    validate_payload,
)
from .pricing_service import describe_offer

CATEGORY_FILTER_ALL = "All"

INVENTORY_OFFER_POLICY = ModelValidationPolicy(
    writable_fields={"category", "item", "size", "quantity", "mrp_cents", "offer", "is_active"},
    required_on_create={"category", "item", "size", "mrp_cents", "offer"},
)

OFFER_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "type", "discount_percent", "start_date", "end_date", "is_active"},
    required_on_create={"title", "description", "type"},
)


def serialize_offer(offer: InventoryOffer) -> dict:
    data = offer.to_dict()
    data["variant_name"] = offer.display_variant_name
    data["offer_description"] = describe_offer(offer.offer, offer.mrp_cents)
    return data


def list_inventory_offers(category: str | None = None) -> list[InventoryOffer]:
    """Active offers ordered by category, then item."""
    query = db.session.query(InventoryOffer).filter(InventoryOffer.is_active.is_(True))
    if category and category != CATEGORY_FILTER_ALL:
        query = query.filter(InventoryOffer.category == category)
    return query.order_by(InventoryOffer.category.asc(), InventoryOffer.item.asc(), InventoryOffer.id.asc()).all()


def list_categories() -> list[str]:
    """Distinct categories of active offers, sorted."""
    rows = (
        db.session.query(InventoryOffer.category)
        .filter(InventoryOffer.is_active.is_(True))
        .distinct()
        .order_by(InventoryOffer.category.asc())
        .all()
    )
    return [r[0] for r in rows]


def update_offer(offer_id: int, payload: dict) -> InventoryOffer | None:
    """
    Admin edit. Returns None if the offer does not exist.

    Raises ValidationError for non-writable fields or out-of-range values.
    """
    patch = validate_payload(
        model=InventoryOffer,
        payload=payload,
        policy=INVENTORY_OFFER_POLICY,
        partial=True,
    )
    enforce_rules_inventory_offer(patch)

    if not is_storable_id(offer_id):
        return None
    offer = db.session.get(InventoryOffer, offer_id)
    if offer is None:
        return None

    for k, v in patch.items():
        setattr(offer, k, v)
    db.session.commit()
    return offer


def delete_offer(offer_id: int) -> bool:
    if not is_storable_id(offer_id):
        return False
    offer = db.session.get(InventoryOffer, offer_id)
    if offer is None:
        return False
    db.session.delete(offer)
    db.session.commit()
    return True


def _first(raw: dict, *keys):
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _rupees_to_cents(value, field: str) -> int:
    return coerce_int(value, field) * 100


def build_offer(raw: dict, index: int = 0) -> InventoryOffer:
    """
    Build an (unsaved) InventoryOffer from a seed record.

    Accepts both API keys (category, item, size, quantity, mrp_cents, offer)
    and the spreadsheet export keys (Category, Item, Size, QTY, MRP, Offer).
    Spreadsheet MRP is whole rupees.
    """
    where = f"offers[{index}]"
    if not isinstance(raw, dict):
        raise ValidationError(f"{where} must be an object")

    category = _first(raw, "category", "Category")
    item = _first(raw, "item", "Item")
    size = _first(raw, "size", "Size")
    offer = _first(raw, "offer", "Offer")
    for name, value in (("category", category), ("item", item), ("size", size), ("offer", offer)):
        if value is None or not str(value).strip():
            raise ValidationError(f"{where}: {name} is required")

    if raw.get("mrp_cents") not in (None, ""):
        mrp_cents = coerce_int(raw["mrp_cents"], f"{where}.mrp_cents")
    else:
        mrp = _first(raw, "mrp", "MRP")
        if mrp is None:
            raise ValidationError(f"{where}: mrp is required")
        mrp_cents = _rupees_to_cents(mrp, f"{where}.MRP")

    quantity = _first(raw, "quantity", "QTY")
    quantity = coerce_int(quantity, f"{where}.quantity") if quantity is not None else 0

    if not 0 <= mrp_cents <= MAX_PRICE_CENTS:
        raise ValidationError(f"{where}: mrp out of range")
    if not 0 <= quantity <= MAX_QUANTITY:
        raise ValidationError(f"{where}: quantity out of range")

    return InventoryOffer(
        category=str(category).strip(),
        item=str(item).strip(),
        size=str(size).strip(),
        quantity=quantity,
        mrp_cents=mrp_cents,
        offer=str(offer).strip(),
        is_active=True,
    )


def seed_offers(records: list[dict]) -> dict[str, int]:
    """
    Replace all inventory offers with the given records, in one transaction.

    Returns {category: count} of what was inserted.
    """
    if not isinstance(records, list):
        raise ValidationError("Invalid format. Expected an array of offers.")

    offers = [build_offer(raw, i) for i, raw in enumerate(records)]

    db.session.query(InventoryOffer).delete(synchronize_session=False)
    db.session.add_all(offers)
    db.session.commit()

    summary: dict[str, int] = {}
    for offer in offers:
        summary[offer.category] = summary.get(offer.category, 0) + 1
    return summary


# ============================================================================
# Campaign offers
# ============================================================================

def list_campaign_offers() -> list[Offer]:
    """Active campaign offers, newest first, with their products loaded."""
    return (
        db.session.query(Offer)
        .filter(Offer.is_active.is_(True))
        .order_by(Offer.created_at.desc(), Offer.id.desc())
        .all()
    )


def _resolve_products(product_ids) -> list[Product]:
    if not isinstance(product_ids, list):
        raise ValidationError("product_ids must be a list")

    ids = []
    for i, raw in enumerate(product_ids):
        value = coerce_int(raw, f"product_ids[{i}]")
        if not is_storable_id(value):
            raise ValidationError(f"product_ids[{i}] is out of range")
        if value not in ids:
            ids.append(value)
    if not ids:
        return []

    found = {p.id: p for p in db.session.query(Product).filter(Product.id.in_(ids)).all()}
    unknown = [pid for pid in ids if pid not in found]
    if unknown:
        raise ValidationError(f"Unknown product ids: {', '.join(str(pid) for pid in unknown)}")
    return [found[pid] for pid in ids]


def _check_dates(start_date, end_date) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date cannot be before start_date")


def _split_payload(payload) -> tuple[dict, object]:
    """Separates product_ids (a relationship, not a column) from the rest."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(payload)
    return fields, fields.pop("product_ids", None)


def create_campaign_offer(payload: dict) -> Offer:
    """Raises ValidationError for missing/unknown fields or unknown products."""
    fields, product_ids = _split_payload(payload)
    patch = validate_payload(model=Offer, payload=fields, policy=OFFER_POLICY, partial=False)
    enforce_rules_offer(patch, OFFER_TYPES)
    _check_dates(patch.get("start_date"), patch.get("end_date"))

    offer = Offer(**patch)
    if product_ids is not None:
        offer.products = _resolve_products(product_ids)

    db.session.add(offer)
    db.session.commit()
    return offer


def update_campaign_offer(offer_id: int, payload: dict) -> Offer | None:
    """Partial update. Returns None if the offer does not exist."""
    fields, product_ids = _split_payload(payload)
    patch = validate_payload(model=Offer, payload=fields, policy=OFFER_POLICY, partial=True)
    enforce_rules_offer(patch, OFFER_TYPES)

    if not is_storable_id(offer_id):
        return None
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        return None

    _check_dates(
        patch["start_date"] if "start_date" in patch else offer.start_date,
        patch["end_date"] if "end_date" in patch else offer.end_date,
    )
    products = _resolve_products(product_ids) if product_ids is not None else None

    for k, v in patch.items():
        setattr(offer, k, v)
    if products is not None:
        offer.products = products
    db.session.commit()
    return offer


def delete_campaign_offer(offer_id: int) -> bool:
    if not is_storable_id(offer_id):
        return False
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        return False
    db.session.delete(offer)
    db.session.commit()
    return True
