# Overview: Server-side pricing of inventory-offer lines from MRP and the promotional offer string.

"""
Offer Pricing

WHY: Inventory offers carry a free-text promotion ("180 for 2", "50%",
"399 Combo"). Storefront clients used to apply it themselves and post the
resulting price; pricing here instead keeps the amount charged under server
control.

Amounts inside offer strings are whole rupees; everything returned is in
paise (cents).

A priced line is a list of PricedPortion so that every portion satisfies
line_total == unit_price_cents * quantity. A bundle offer applied to a
quantity that is not a multiple of the bundle size yields the bundled units
and the remainder at MRP. A bundle price that does not divide into whole
paise is spread over two unit prices one paisa apart, so every bundle still
costs exactly its advertised price.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

OFFER_BUNDLE = "bundle"
OFFER_PERCENT = "percent"
OFFER_COMBO = "combo"
OFFER_UNKNOWN = "unknown"

_BUNDLE_RE = re.compile(r"^₹?\s*(\d+)\s*for\s*(\d+)$", re.IGNORECASE)
_PERCENT_RE = re.compile(r"^(\d+)\s*%(\s*off)?$", re.IGNORECASE)
_COMBO_RE = re.compile(r"^₹?\s*(\d+)\s*combo$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedOffer:
    type: str
    original: str
    bundle_price_cents: int | None = None
    bundle_qty: int | None = None
    discount_percent: int | None = None
    combo_price_cents: int | None = None


@dataclass(frozen=True)
class PricedPortion:
    unit_price_cents: int
    quantity: int
    offer_applied: bool = False

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


def parse_offer(offer: str | None) -> ParsedOffer:
    normalized = (offer or "").strip()

    match = _BUNDLE_RE.match(normalized)
    if match:
        qty = int(match.group(2))
        if qty > 0:
            return ParsedOffer(
                type=OFFER_BUNDLE,
                original=normalized,
                bundle_price_cents=int(match.group(1)) * 100,
                bundle_qty=qty,
            )

    match = _PERCENT_RE.match(normalized)
    if match:
        pct = int(match.group(1))
        if 0 <= pct <= 100:
            return ParsedOffer(type=OFFER_PERCENT, original=normalized, discount_percent=pct)

    match = _COMBO_RE.match(normalized)
    if match:
        return ParsedOffer(
            type=OFFER_COMBO,
            original=normalized,
            combo_price_cents=int(match.group(1)) * 100,
        )

    return ParsedOffer(type=OFFER_UNKNOWN, original=normalized)


def _percent_unit_price(mrp_cents: int, discount_percent: int) -> int:
    value = Decimal(mrp_cents) * Decimal(100 - discount_percent) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_offer_line(mrp_cents: int, offer: str | None, quantity: int) -> list[PricedPortion]:
    """
    Price `quantity` units of an inventory offer.

    Returns up to three portions whose quantities sum to `quantity`.
    """
    if quantity <= 0:
        return []

    parsed = parse_offer(offer)

    if parsed.type == OFFER_BUNDLE:
        bundle_qty = parsed.bundle_qty
        bundles = quantity // bundle_qty
        remainder = quantity % bundle_qty
        # "100 for 3": 3334 + 3333 + 3333, so each bundle costs exactly 10000
        unit_cents, odd_paise = divmod(parsed.bundle_price_cents, bundle_qty)

        portions = []
        if bundles and odd_paise:
            portions.append(PricedPortion(
                unit_price_cents=unit_cents + 1,
                quantity=bundles * odd_paise,
                offer_applied=True,
            ))
        if bundles and bundle_qty > odd_paise:
            portions.append(PricedPortion(
                unit_price_cents=unit_cents,
                quantity=bundles * (bundle_qty - odd_paise),
                offer_applied=True,
            ))
        if remainder:
            portions.append(PricedPortion(unit_price_cents=mrp_cents, quantity=remainder))
        return portions

    elif parsed.type == OFFER_PERCENT:
        return [PricedPortion(
            unit_price_cents=_percent_unit_price(mrp_cents, parsed.discount_percent),
            quantity=quantity,
            offer_applied=parsed.discount_percent > 0,
        )]

    elif parsed.type == OFFER_COMBO:
        return [PricedPortion(
            unit_price_cents=parsed.combo_price_cents,
            quantity=quantity,
            offer_applied=True,
        )]

    return [PricedPortion(unit_price_cents=mrp_cents, quantity=quantity)]


def describe_offer(offer: str | None, mrp_cents: int) -> str:
    """Short human-readable description of an offer, for listings."""
    parsed = parse_offer(offer)

    if parsed.type == OFFER_BUNDLE:
        per_item = parsed.bundle_price_cents / parsed.bundle_qty / 100
        savings = (mrp_cents * parsed.bundle_qty - parsed.bundle_price_cents) / 100
        return f"₹{per_item:.0f}/each when you buy {parsed.bundle_qty} (Save ₹{savings:.0f})"
    if parsed.type == OFFER_PERCENT:
        return f"{parsed.discount_percent}% off on all quantities"
    if parsed.type == OFFER_COMBO:
        return f"Special combo price: ₹{parsed.combo_price_cents // 100}"
    return parsed.original
