# Overview: Flask API routes for the product catalog; public, read-only.

from flask import Blueprint, request, jsonify

from ..services import catalog_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List active products, newest first.

    Query params:
    - category: str (optional) - exact category; "All" means every category
    - search: str (optional) - matches name, description or notes
    """
    products = catalog_service.list_products(
        category=request.args.get("category"),
        search=request.args.get("search"),
    )
    return jsonify({"products": [p.to_dict() for p in products]})


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    product = catalog_service.get_product(product_id)
    if product is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": product.to_dict()})
