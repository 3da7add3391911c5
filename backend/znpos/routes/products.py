# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's business,
taken from the session principal (set by @require_auth).

SECURITY: All routes require the inventory capability.
Products are never deleted; DELETE deactivates.
"""

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    """Active products of the caller's business, by name."""
    return get_storage().list_products(g.principal)


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return get_storage().get_product(g.principal, product_id)


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}
    return get_storage().create_product(g.principal, payload), 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Partial update: only fields present in the body change."""
    payload = request.get_json(silent=True) or {}
    return get_storage().update_product(g.principal, product_id, payload)


@products_bp.delete("/<int:product_id>")
@require_auth
def deactivate_product_route(product_id: int):
    return get_storage().deactivate_product(g.principal, product_id)
