import pytest

from aura.models import InventoryOffer, Offer, Product, offer_products
from aura.services import catalog_service, offer_service
from aura.validation import ValidationError


def _add_offer(db_session, item, category="Agarbatti", is_active=True, offer="50%"):
    o = InventoryOffer(
        category=category,
        item=item,
        size="100g",
        quantity=5,
        mrp_cents=10000,
        offer=offer,
        is_active=is_active,
    )
    db_session.add(o)
    db_session.commit()
    return o


class TestListing:

    def test_active_offers_sorted_by_category_then_item(self, db_session):
        _add_offer(db_session, "Sandal", category="Dhoop")
        _add_offer(db_session, "Rose", category="Agarbatti")
        _add_offer(db_session, "Jasmine", category="Agarbatti")
        _add_offer(db_session, "Hidden", category="Agarbatti", is_active=False)

        items = [(o.category, o.item) for o in offer_service.list_inventory_offers()]
        assert items == [("Agarbatti", "Jasmine"), ("Agarbatti", "Rose"), ("Dhoop", "Sandal")]

    def test_category_filter(self, db_session):
        _add_offer(db_session, "Sandal", category="Dhoop")
        _add_offer(db_session, "Rose", category="Agarbatti")

        assert [o.item for o in offer_service.list_inventory_offers("Dhoop")] == ["Sandal"]
        assert len(offer_service.list_inventory_offers("All")) == 2

    def test_categories(self, db_session):
        _add_offer(db_session, "Sandal", category="Dhoop")
        _add_offer(db_session, "Rose", category="Agarbatti")
        _add_offer(db_session, "Jasmine", category="Agarbatti")
        _add_offer(db_session, "Hidden", category="Retired", is_active=False)

        assert offer_service.list_categories() == ["Agarbatti", "Dhoop"]


class TestUpdateOffer:

    def test_partial_update(self, db_session, offer):
        updated = offer_service.update_offer(offer.id, {"quantity": 25, "offer": "399 Combo"})
        assert updated.quantity == 25
        assert updated.offer == "399 Combo"
        assert updated.item == "Sandal Sticks"

    @pytest.mark.parametrize("payload", [
        {"quantity": -1},
        {"mrp_cents": 1_000_000_000},
        {"quantity": "ten"},
        {"id": 5},
        {"item": ""},
    ])
    def test_invalid_updates(self, db_session, offer, payload):
        with pytest.raises(ValidationError):
            offer_service.update_offer(offer.id, payload)

    def test_missing_offer(self, db_session):
        assert offer_service.update_offer(987654, {"quantity": 1}) is None
        assert offer_service.delete_offer(987654) is False


class TestSeedOffers:

    def test_spreadsheet_keys(self, db_session, offer):
        summary = offer_service.seed_offers([
            {"Category": "Dhoop", "Item": "Guggal", "Size": 50, "QTY": "12", "MRP": 90, "Offer": "180 for 2"},
            {"Category": "Dhoop", "Item": "Loban", "Size": "50g", "QTY": 3, "MRP": "120", "Offer": "10%"},
            {"category": "Oils", "item": "Lavender", "size": "15ml", "quantity": 4, "mrp_cents": 25000, "offer": "399 Combo"},
        ])

        assert summary == {"Dhoop": 2, "Oils": 1}
        offers = db_session.query(InventoryOffer).order_by(InventoryOffer.item).all()
        assert [o.item for o in offers] == ["Guggal", "Lavender", "Loban"]
        guggal = offers[0]
        assert guggal.size == "50"
        assert guggal.quantity == 12
        assert guggal.mrp_cents == 9000

    def test_invalid_record_keeps_existing_offers(self, db_session, offer):
        with pytest.raises(ValidationError):
            offer_service.seed_offers([{"Category": "Dhoop", "Item": "Guggal", "Size": "50g", "MRP": 90}])
        assert db_session.query(InventoryOffer).count() == 1


class TestOfferRoutes:

    def test_public_listing(self, client, offer):
        resp = client.get("/api/offers/inventory")
        assert resp.status_code == 200
        listed = resp.get_json()["inventory_offers"][0]
        assert listed["id"] == offer.id
        assert listed["mrp_cents"] == 10000
        assert listed["variant_name"] == "100g - Agarbatti"
        assert listed["offer_description"] == "₹90/each when you buy 2 (Save ₹20)"

    def test_categories_route(self, client, offer):
        assert client.get("/api/offers/inventory/categories").get_json() == {"categories": ["Agarbatti"]}

    def test_update_requires_admin(self, client, customer_headers, offer):
        resp = client.put(f"/api/offers/inventory/{offer.id}", json={"quantity": 1}, headers=customer_headers)
        assert resp.status_code == 403

    def test_admin_update_and_delete(self, client, admin_headers, offer):
        resp = client.put(f"/api/offers/inventory/{offer.id}", json={"quantity": 1}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["inventory_offer"]["quantity"] == 1

        resp = client.put(f"/api/offers/inventory/{offer.id}", json={"quantity": -3}, headers=admin_headers)
        assert resp.status_code == 400

        assert client.delete(f"/api/offers/inventory/{offer.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/offers/inventory/{offer.id}", headers=admin_headers).status_code == 404

    def test_oversized_id_is_not_found(self, client, admin_headers):
        huge = 10**20
        resp = client.put(f"/api/offers/inventory/{huge}", json={"quantity": 1}, headers=admin_headers)
        assert resp.status_code == 404
        assert client.delete(f"/api/offers/inventory/{huge}", headers=admin_headers).status_code == 404


MONSOON = {
    "title": "Monsoon Bundle",
    "description": "Oud and rose for the rains",
    "type": "bundle",
}


class TestCampaignOffers:

    def test_create_with_products(self, db_session, product):
        offer = offer_service.create_campaign_offer({
            **MONSOON,
            "product_ids": [product.id, str(product.id)],
            "discount_percent": "15",
            "start_date": "2026-06-01",
            "end_date": "2026-09-30T00:00:00.000Z",
        })

        assert [p.id for p in offer.products] == [product.id]
        assert offer.discount_percent == 15
        data = offer.to_dict()
        assert data["start_date"] == "2026-06-01"
        assert data["end_date"] == "2026-09-30"
        assert data["products"][0]["name"] == "Oud Noir"
        assert data["is_active"] is True

    @pytest.mark.parametrize("payload", [
        {"description": "x", "type": "bundle"},
        {**MONSOON, "type": "bogo"},
        {**MONSOON, "discount_percent": 101},
        {**MONSOON, "discount_percent": -5},
        {**MONSOON, "start_date": "June 1st"},
        {**MONSOON, "start_date": "2026-09-01", "end_date": "2026-08-01"},
        {**MONSOON, "product_ids": "1"},
        {**MONSOON, "product_ids": [10**20]},
        {**MONSOON, "featured": True},
    ])
    def test_invalid_create(self, db_session, payload):
        with pytest.raises(ValidationError):
            offer_service.create_campaign_offer(payload)
        assert db_session.query(Offer).count() == 0

    def test_unknown_product_ids(self, db_session, product):
        with pytest.raises(ValidationError, match="987654"):
            offer_service.create_campaign_offer({**MONSOON, "product_ids": [product.id, 987654]})

    def test_listing_is_active_only_newest_first(self, db_session):
        first = offer_service.create_campaign_offer({**MONSOON, "title": "First"})
        second = offer_service.create_campaign_offer({**MONSOON, "title": "Second"})
        offer_service.create_campaign_offer({**MONSOON, "title": "Hidden", "is_active": False})

        assert [o.id for o in offer_service.list_campaign_offers()] == [second.id, first.id]

    def test_partial_update(self, db_session, product):
        offer = offer_service.create_campaign_offer({**MONSOON, "start_date": "2026-06-01"})

        updated = offer_service.update_campaign_offer(offer.id, {"type": "discount", "product_ids": [product.id]})
        assert updated.type == "discount"
        assert updated.title == "Monsoon Bundle"
        assert [p.id for p in updated.products] == [product.id]

        # end_date is checked against the stored start_date
        with pytest.raises(ValidationError):
            offer_service.update_campaign_offer(offer.id, {"end_date": "2026-05-01"})

        cleared = offer_service.update_campaign_offer(offer.id, {"product_ids": []})
        assert cleared.products == []

    def test_missing_offer(self, db_session):
        assert offer_service.update_campaign_offer(987654, {"title": "x"}) is None
        assert offer_service.update_campaign_offer(10**20, {"title": "x"}) is None
        assert offer_service.delete_campaign_offer(987654) is False

    def test_delete_keeps_products(self, db_session, product):
        offer = offer_service.create_campaign_offer({**MONSOON, "product_ids": [product.id]})

        assert offer_service.delete_campaign_offer(offer.id) is True
        assert db_session.query(Offer).count() == 0
        assert db_session.execute(offer_products.select()).all() == []
        assert db_session.query(Product).count() == 1

    def test_catalog_replace_drops_links(self, db_session, product):
        offer = offer_service.create_campaign_offer({**MONSOON, "product_ids": [product.id]})

        catalog_service.seed_products([{
            "name": "Fig Candle",
            "category": "Home Collection",
            "variants": [{"name": "200g", "type": "Candle", "price_cents": 150000, "stock": 4, "sku": "FIG-200"}],
        }], replace=True)

        db_session.expire_all()
        assert db_session.get(Offer, offer.id).products == []


class TestCampaignOfferRoutes:

    def test_public_listing(self, client, db_session, product):
        offer_service.create_campaign_offer({**MONSOON, "product_ids": [product.id]})

        resp = client.get("/api/offers")
        assert resp.status_code == 200
        listed = resp.get_json()["offers"]
        assert len(listed) == 1
        assert listed[0]["title"] == "Monsoon Bundle"
        assert listed[0]["products"][0]["id"] == product.id

    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/offers"),
        ("PUT", "/api/offers/1"),
        ("DELETE", "/api/offers/1"),
    ])
    def test_writes_require_admin(self, client, customer_headers, method, path):
        resp = getattr(client, method.lower())(path, json=MONSOON, headers=customer_headers)
        assert resp.status_code == 403
        assert getattr(client, method.lower())(path, json=MONSOON).status_code == 401

    def test_admin_crud(self, client, admin_headers, product):
        resp = client.post("/api/offers", json={**MONSOON, "product_ids": [product.id]}, headers=admin_headers)
        assert resp.status_code == 201
        offer_id = resp.get_json()["offer"]["id"]

        resp = client.put(f"/api/offers/{offer_id}", json={"discount_percent": 20}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["offer"]["discount_percent"] == 20

        resp = client.put(f"/api/offers/{offer_id}", json={"discount_percent": 200}, headers=admin_headers)
        assert resp.status_code == 400

        assert client.delete(f"/api/offers/{offer_id}", headers=admin_headers).status_code == 200
        resp = client.delete(f"/api/offers/{offer_id}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Offer not found"

    def test_create_validation_error(self, client, admin_headers):
        resp = client.post("/api/offers", json={"title": "No type"}, headers=admin_headers)
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_json()["error"]
