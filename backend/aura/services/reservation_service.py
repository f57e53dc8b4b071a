# Overview: Stock reservation across catalog variants and inventory offers; encapsulates conditional decrements.

"""
Stock Reservation Service

WHY: Two customers ordering the last units of a variant at the same time
must not both succeed. Every reservation is a single conditional UPDATE

    UPDATE ... SET stock = stock - :qty WHERE id = :id AND stock >= :qty

so the check and the decrement cannot be separated by another writer. Zero
affected rows means the stock was not there.

Resolution: a cart line's id is looked up through SELLABLE_SOURCES in
priority order (catalog first, then inventory offers). A line may pin its
source explicitly with `source` ("catalog" / "offer") or `offer_id`.

Atomicity: reserve() applies the lines of one order in sequence. If any
line fails, the lines already applied are released (compensating
increment) before the error propagates. Callers run reserve() inside a
transaction and roll it back on failure as well, so no partial reservation
is ever committed. reserve() never commits.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import update

from ..extensions import db
from ..models import Product, ProductVariant, InventoryOffer
from ..validation import MAX_PRICE_CENTS, MAX_QUANTITY, ValidationError, coerce_int, is_storable_id
from .errors import (
    InsufficientStockError,
    InvalidOrderItemError,
    OrderError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from .pricing_service import PricedPortion, price_offer_line

SOURCE_CATALOG = "catalog"
SOURCE_OFFER = "offer"


@dataclass(frozen=True)
class CartLine:
    """A requested order line, validated but not yet resolved."""
    product_id: int
    quantity: int
    variant_id: int | None = None
    source: str | None = None
    price_cents: int | None = None
    image: str | None = None


def _optional_int(raw: dict, key: str, index: int) -> int | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    try:
        return coerce_int(value, f"items[{index}].{key}")
    except ValidationError as e:
        raise InvalidOrderItemError(str(e), details={"index": index, "field": key})


def _optional_id(raw: dict, key: str, index: int) -> int | None:
    value = _optional_int(raw, key, index)
    if value is not None and not is_storable_id(value):
        raise InvalidOrderItemError(
            f"items[{index}].{key} is out of range",
            details={"index": index, "field": key},
        )
    return value


def parse_cart_line(raw, index: int) -> CartLine:
    """Validate one client cart entry."""
    if not isinstance(raw, dict):
        raise InvalidOrderItemError(f"items[{index}] must be an object", details={"index": index})

    offer_id = _optional_id(raw, "offer_id", index)
    product_id = offer_id if offer_id is not None else _optional_id(raw, "product_id", index)
    if product_id is None:
        raise InvalidOrderItemError(
            f"items[{index}].product_id is required",
            details={"index": index, "field": "product_id"},
        )

    quantity = _optional_int(raw, "quantity", index)
    if quantity is None or quantity < 1 or quantity > MAX_QUANTITY:
        raise InvalidOrderItemError(
            f"items[{index}].quantity must be between 1 and {MAX_QUANTITY}",
            details={"index": index, "field": "quantity"},
        )

    source = SOURCE_OFFER if offer_id is not None else raw.get("source")
    if source not in (None, SOURCE_CATALOG, SOURCE_OFFER):
        raise InvalidOrderItemError(
            f"items[{index}].source must be 'catalog' or 'offer'",
            details={"index": index, "field": "source"},
        )

    price_cents = _optional_int(raw, "price_cents", index)
    if price_cents is not None and not 0 <= price_cents <= MAX_PRICE_CENTS:
        raise InvalidOrderItemError(
            f"items[{index}].price_cents is out of range",
            details={"index": index, "field": "price_cents"},
        )

    image = raw.get("image")
    return CartLine(
        product_id=product_id,
        quantity=quantity,
        variant_id=_optional_id(raw, "variant_id", index),
        source=source,
        price_cents=price_cents,
        image=str(image) if image else None,
    )


class SellableItem:
    """
    Something an order line can be reserved against.

    Implementations hold the loaded row and know how to price, reserve,
    release and snapshot it.
    """
    source: str = ""

    @property
    def identity(self) -> dict:
        raise NotImplementedError

    @property
    def display_name(self) -> str:
        raise NotImplementedError

    def available_quantity(self) -> int:
        raise NotImplementedError

    def price(self, line: CartLine, *, trust_client_price: bool) -> list[PricedPortion]:
        raise NotImplementedError

    def reserve(self, quantity: int) -> bool:
        """Conditionally decrement stock. Returns False if not enough."""
        raise NotImplementedError

    def release(self, quantity: int) -> None:
        raise NotImplementedError

    def snapshot(self, line: CartLine) -> dict:
        raise NotImplementedError


class CatalogVariantItem(SellableItem):
    source = SOURCE_CATALOG

    def __init__(self, product: Product, variant: ProductVariant):
        self.product = product
        self.variant = variant

    @property
    def identity(self) -> dict:
        return {"product_id": self.product.id, "variant_id": self.variant.id}

    @property
    def display_name(self) -> str:
        return f"{self.product.name} - {self.variant.name}"

    def available_quantity(self) -> int:
        return self.variant.stock

    def price(self, line: CartLine, *, trust_client_price: bool) -> list[PricedPortion]:
        # Catalog prices are never taken from the client
        return [PricedPortion(unit_price_cents=self.variant.price_cents, quantity=line.quantity)]

    def reserve(self, quantity: int) -> bool:
        result = db.session.execute(
            update(ProductVariant)
            .where(ProductVariant.id == self.variant.id, ProductVariant.stock >= quantity)
            .values(stock=ProductVariant.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        db.session.expire(self.variant, ["stock"])
        return result.rowcount == 1

    def release(self, quantity: int) -> None:
        db.session.execute(
            update(ProductVariant)
            .where(ProductVariant.id == self.variant.id)
            .values(stock=ProductVariant.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        db.session.expire(self.variant, ["stock"])

    def snapshot(self, line: CartLine) -> dict:
        return {
            "source": self.source,
            "product_id": self.product.id,
            "variant_id": self.variant.id,
            "offer_id": None,
            "product_name": self.product.name,
            "variant_name": self.variant.name,
            "image": self.product.image or "",
        }


class InventoryOfferItem(SellableItem):
    source = SOURCE_OFFER

    def __init__(self, offer: InventoryOffer):
        self.offer = offer

    @property
    def identity(self) -> dict:
        return {"offer_id": self.offer.id}

    @property
    def display_name(self) -> str:
        return self.offer.item

    def available_quantity(self) -> int:
        return self.offer.quantity

    def price(self, line: CartLine, *, trust_client_price: bool) -> list[PricedPortion]:
        if trust_client_price and line.price_cents is not None:
            return [PricedPortion(unit_price_cents=line.price_cents, quantity=line.quantity)]
        return price_offer_line(self.offer.mrp_cents, self.offer.offer, line.quantity)

    def reserve(self, quantity: int) -> bool:
        result = db.session.execute(
            update(InventoryOffer)
            .where(InventoryOffer.id == self.offer.id, InventoryOffer.quantity >= quantity)
            .values(quantity=InventoryOffer.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        db.session.expire(self.offer, ["quantity"])
        return result.rowcount == 1

    def release(self, quantity: int) -> None:
        db.session.execute(
            update(InventoryOffer)
            .where(InventoryOffer.id == self.offer.id)
            .values(quantity=InventoryOffer.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        db.session.expire(self.offer, ["quantity"])

    def snapshot(self, line: CartLine) -> dict:
        return {
            "source": self.source,
            "product_id": None,
            "variant_id": None,
            "offer_id": self.offer.id,
            "product_name": self.offer.item,
            "variant_name": self.offer.display_variant_name,
            "image": line.image or "",
        }


def _lookup_catalog(line: CartLine) -> SellableItem | None:
    product = db.session.get(Product, line.product_id)
    if product is None or not product.is_active:
        return None

    variant = product.find_variant(line.variant_id) if line.variant_id is not None else None
    if variant is None:
        raise VariantNotFoundError(
            f"Variant {line.variant_id} not found for product {product.name}",
            details={"product_id": product.id, "variant_id": line.variant_id},
        )
    return CatalogVariantItem(product, variant)


def _lookup_offer(line: CartLine) -> SellableItem | None:
    offer = db.session.get(InventoryOffer, line.product_id)
    if offer is None or not offer.is_active:
        return None
    return InventoryOfferItem(offer)


# Priority order matters: catalog products win over inventory offers
SELLABLE_SOURCES = (
    (SOURCE_CATALOG, _lookup_catalog),
    (SOURCE_OFFER, _lookup_offer),
)


def resolve_line(line: CartLine) -> SellableItem:
    for source, lookup in SELLABLE_SOURCES:
        if line.source is not None and line.source != source:
            continue
        item = lookup(line)
        if item is not None:
            return item

    raise ProductNotFoundError(
        f"Product not found: {line.product_id}",
        details={"product_id": line.product_id},
    )


@dataclass
class ReservedLine:
    item: SellableItem
    line: CartLine
    portions: list[PricedPortion]

    @property
    def total_cents(self) -> int:
        return sum(p.line_total_cents for p in self.portions)


@dataclass
class Reservation:
    """Stock held for one order. Not committed by itself."""
    lines: list[ReservedLine] = field(default_factory=list)
    released: bool = False

    @property
    def total_cents(self) -> int:
        return sum(rl.total_cents for rl in self.lines)

    def release(self) -> None:
        """Undo every applied line (compensating increments), newest first."""
        if self.released:
            return
        for reserved in reversed(self.lines):
            reserved.item.release(reserved.line.quantity)
        self.released = True


def reserve(lines: list[CartLine], *, trust_client_price: bool = False) -> Reservation:
    """
    Reserve stock for every line, or for none of them.

    Raises ProductNotFoundError, VariantNotFoundError or
    InsufficientStockError; on any failure earlier lines are released first.
    """
    reservation = Reservation()
    try:
        for line in lines:
            item = resolve_line(line)
            portions = item.price(line, trust_client_price=trust_client_price)

            if not item.reserve(line.quantity):
                available = item.available_quantity()
                raise InsufficientStockError(
                    f"Insufficient stock for {item.display_name}: "
                    f"requested {line.quantity}, available {available}",
                    details={
                        **item.identity,
                        "requested": line.quantity,
                        "available": available,
                    },
                )

            reservation.lines.append(ReservedLine(item=item, line=line, portions=portions))
    except OrderError:
        reservation.release()
        raise

    return reservation
