# Overview: Flask API routes for product categories.

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    return get_storage().list_categories(g.principal)


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    return get_storage().get_category(g.principal, category_id)


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    return get_storage().create_category(g.principal, payload), 201


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    return get_storage().update_category(g.principal, category_id, payload)
