import json

from aura.models import InventoryOffer, Product, User


def test_seed_catalog_and_offers(app, db_session, tmp_path):
    products = tmp_path / "products.json"
    products.write_text(json.dumps([{
        "name": "Fig Candle",
        "category": "Home Collection",
        "variants": [{"name": "200g", "type": "Candle", "price_cents": 150000, "stock": 4, "sku": "FIG-200"}],
    }]), encoding="utf-8")
    offers = tmp_path / "offers.json"
    offers.write_text(json.dumps([
        {"Category": "Dhoop", "Item": "Guggal", "Size": "50g", "QTY": 12, "MRP": 90, "Offer": "180 for 2"},
    ]), encoding="utf-8")

    runner = app.test_cli_runner()

    result = runner.invoke(args=["catalog", "seed", str(products)])
    assert result.exit_code == 0, result.output
    assert "Seeded 1 products" in result.output

    result = runner.invoke(args=["catalog", "seed-offers", str(offers)])
    assert result.exit_code == 0, result.output
    assert "Dhoop: 1 items" in result.output

    assert db_session.query(Product).count() == 1
    assert db_session.query(InventoryOffer).one().mrp_cents == 9000


def test_seed_rejects_invalid_file(app, db_session, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([{"name": "No Variants", "category": "Accessories", "variants": []}]), encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["catalog", "seed", str(bad)])
    assert result.exit_code != 0
    assert "at least one variant" in result.output


def test_create_admin(app, db_session):
    result = app.test_cli_runner().invoke(args=["users", "create-admin", "--phone", "98765 43210", "--name", "Owner"])
    assert result.exit_code == 0, result.output

    user = db_session.query(User).one()
    assert user.role == "admin"
    assert user.phone == "+919876543210"
    assert user.name == "Owner"
