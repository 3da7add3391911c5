# Overview: Flask API routes for business settings.

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/business")
@require_auth
def get_business_route():
    return get_storage().get_business(g.principal)


@settings_bp.put("/business")
@require_auth
def update_business_route():
    """Partial update of name, contact details, tax rate, currency, timezone and receipt footer."""
    payload = request.get_json(silent=True) or {}
    return get_storage().update_business(g.principal, payload)
