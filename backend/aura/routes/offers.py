# Overview: Flask API routes for offers; public listings and admin edits of inventory and campaign offers.

from flask import Blueprint, request, jsonify, current_app

from ..services import offer_service
from ..validation import ValidationError
from ..decorators import require_admin, require_auth

offers_bp = Blueprint("offers", __name__, url_prefix="/api/offers")


@offers_bp.get("/inventory")
def list_inventory_offers():
    """
    Active inventory offers ordered by category and item.

    Query params:
    - category: str (optional) - "All" means every category
    """
    offers = offer_service.list_inventory_offers(category=request.args.get("category"))
    return jsonify({"inventory_offers": [offer_service.serialize_offer(o) for o in offers]})


@offers_bp.get("/inventory/categories")
def list_inventory_categories():
    return jsonify({"categories": offer_service.list_categories()})


@offers_bp.put("/inventory/<int:offer_id>")
@require_auth
@require_admin
def update_inventory_offer(offer_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        offer = offer_service.update_offer(offer_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if offer is None:
        return jsonify({"error": "Inventory offer not found"}), 404

    current_app.logger.info("Inventory offer %s updated: %s", offer_id, sorted(payload))
    return jsonify({"inventory_offer": offer_service.serialize_offer(offer)})


@offers_bp.delete("/inventory/<int:offer_id>")
@require_auth
@require_admin
def delete_inventory_offer(offer_id: int):
    if not offer_service.delete_offer(offer_id):
        return jsonify({"error": "Inventory offer not found"}), 404

    current_app.logger.info("Inventory offer %s deleted", offer_id)
    return jsonify({"message": "Inventory offer deleted successfully"})


# ============================================================================
# Campaign offers
# ============================================================================

@offers_bp.get("")
def list_campaign_offers():
    """Active campaign offers, newest first, with their products embedded."""
    offers = offer_service.list_campaign_offers()
    return jsonify({"offers": [o.to_dict() for o in offers]})


@offers_bp.post("")
@require_auth
@require_admin
def create_campaign_offer():
    """
    Body: {title, description, type: "bundle"|"discount", product_ids?,
    discount_percent?, start_date?, end_date?, is_active?}
    """
    payload = request.get_json(silent=True) or {}

    try:
        offer = offer_service.create_campaign_offer(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info("Campaign offer %s created: %s", offer.id, offer.title)
    return jsonify({"offer": offer.to_dict()}), 201


@offers_bp.put("/<int:offer_id>")
@require_auth
@require_admin
def update_campaign_offer(offer_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        offer = offer_service.update_campaign_offer(offer_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if offer is None:
        return jsonify({"error": "Offer not found"}), 404

    current_app.logger.info("Campaign offer %s updated: %s", offer_id, sorted(payload))
    return jsonify({"offer": offer.to_dict()})


@offers_bp.delete("/<int:offer_id>")
@require_auth
@require_admin
def delete_campaign_offer(offer_id: int):
    if not offer_service.delete_campaign_offer(offer_id):
        return jsonify({"error": "Offer not found"}), 404

    current_app.logger.info("Campaign offer %s deleted", offer_id)
    return jsonify({"message": "Offer deleted successfully"})
