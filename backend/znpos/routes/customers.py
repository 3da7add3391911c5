# Overview: Flask API routes for customer records.

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    return get_storage().list_customers(g.principal)


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    return get_storage().get_customer(g.principal, customer_id)


@customers_bp.post("")
@require_auth
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    return get_storage().create_customer(g.principal, payload), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}
    return get_storage().update_customer(g.principal, customer_id, payload)
