"""
Offer pricing tests.

Verifies:
- Offer string parsing (bundle, percent, combo, unknown)
- Bundle lines split into bundled units + remainder at MRP
- Every portion satisfies line total = unit price x quantity
"""

import pytest

from aura.services.pricing_service import (
    OFFER_BUNDLE,
    OFFER_COMBO,
    OFFER_PERCENT,
    OFFER_UNKNOWN,
    PricedPortion,
    describe_offer,
    parse_offer,
    price_offer_line,
)


class TestParseOffer:

    @pytest.mark.parametrize(
        "offer,expected_type",
        [
            ("180 for 2", OFFER_BUNDLE),
            ("₹180 for 2", OFFER_BUNDLE),
            ("180 FOR 2", OFFER_BUNDLE),
            ("50%", OFFER_PERCENT),
            ("20% off", OFFER_PERCENT),
            ("399 Combo", OFFER_COMBO),
            ("₹399 combo", OFFER_COMBO),
            ("Buy one get one", OFFER_UNKNOWN),
            ("", OFFER_UNKNOWN),
            (None, OFFER_UNKNOWN),
        ],
    )
    def test_offer_types(self, offer, expected_type):
        assert parse_offer(offer).type == expected_type

    def test_bundle_amounts_are_converted_to_cents(self):
        parsed = parse_offer("180 for 2")
        assert parsed.bundle_price_cents == 18000
        assert parsed.bundle_qty == 2

    def test_zero_quantity_bundle_is_not_a_bundle(self):
        assert parse_offer("180 for 0").type == OFFER_UNKNOWN

    def test_percent_above_100_is_not_a_discount(self):
        assert parse_offer("150%").type == OFFER_UNKNOWN


class TestPriceOfferLine:

    def test_bundle_with_remainder_splits_into_two_portions(self):
        portions = price_offer_line(10000, "180 for 2", 3)
        assert portions == [
            PricedPortion(unit_price_cents=9000, quantity=2, offer_applied=True),
            PricedPortion(unit_price_cents=10000, quantity=1),
        ]
        assert sum(p.line_total_cents for p in portions) == 28000

    def test_bundle_exact_multiple(self):
        portions = price_offer_line(10000, "180 for 2", 4)
        assert portions == [PricedPortion(unit_price_cents=9000, quantity=4, offer_applied=True)]

    def test_bundle_below_group_size_is_charged_at_mrp(self):
        assert price_offer_line(10000, "180 for 2", 1) == [PricedPortion(unit_price_cents=10000, quantity=1)]

    def test_uneven_bundle_keeps_the_bundle_price(self):
        # 100.00 / 3 is not a whole number of paise
        portions = price_offer_line(5000, "100 for 3", 3)
        assert portions == [
            PricedPortion(unit_price_cents=3334, quantity=1, offer_applied=True),
            PricedPortion(unit_price_cents=3333, quantity=2, offer_applied=True),
        ]
        assert sum(p.line_total_cents for p in portions) == 10000

    def test_uneven_bundles_with_remainder(self):
        # two bundles of "250 for 3" plus one unit at MRP
        portions = price_offer_line(10000, "250 for 3", 7)
        assert portions == [
            PricedPortion(unit_price_cents=8334, quantity=2, offer_applied=True),
            PricedPortion(unit_price_cents=8333, quantity=4, offer_applied=True),
            PricedPortion(unit_price_cents=10000, quantity=1),
        ]
        assert sum(p.line_total_cents for p in portions) == 2 * 25000 + 10000

    def test_percent_discount(self):
        assert price_offer_line(10000, "50%", 3) == [
            PricedPortion(unit_price_cents=5000, quantity=3, offer_applied=True)
        ]

    def test_percent_rounds_half_up(self):
        # 999 * 0.85 = 849.15 -> 849 ; 333 * 0.5 = 166.5 -> 167
        assert price_offer_line(999, "15%", 1)[0].unit_price_cents == 849
        assert price_offer_line(333, "50%", 1)[0].unit_price_cents == 167

    def test_combo_price_per_unit(self):
        assert price_offer_line(50000, "399 Combo", 2) == [
            PricedPortion(unit_price_cents=39900, quantity=2, offer_applied=True)
        ]

    def test_unknown_offer_charges_mrp(self):
        assert price_offer_line(12500, "Festive special", 2) == [
            PricedPortion(unit_price_cents=12500, quantity=2)
        ]

    def test_zero_quantity_prices_nothing(self):
        assert price_offer_line(10000, "50%", 0) == []

    @pytest.mark.parametrize("offer", ["180 for 2", "250 for 3", "10%", "399 Combo", "none"])
    @pytest.mark.parametrize("quantity", [1, 2, 5, 7])
    def test_portions_cover_the_requested_quantity(self, offer, quantity):
        portions = price_offer_line(10000, offer, quantity)
        assert sum(p.quantity for p in portions) == quantity


class TestDescribeOffer:

    def test_bundle_description(self):
        assert describe_offer("180 for 2", 10000) == "₹90/each when you buy 2 (Save ₹20)"

    def test_percent_description(self):
        assert describe_offer("50%", 10000) == "50% off on all quantities"

    def test_combo_description(self):
        assert describe_offer("399 Combo", 50000) == "Special combo price: ₹399"

    def test_unknown_offer_is_returned_as_is(self):
        assert describe_offer("Festive special", 10000) == "Festive special"
