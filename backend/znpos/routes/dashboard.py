# Overview: Flask API routes for dashboard reports; read-only.

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth
from ..services.storage import RECENT_TRANSACTIONS_LIMIT, TOP_PRODUCTS_LIMIT

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    return get_storage().dashboard_stats(g.principal)


@dashboard_bp.get("/recent-transactions")
@require_auth
def recent_transactions_route():
    limit = request.args.get("limit", RECENT_TRANSACTIONS_LIMIT, type=int)
    return get_storage().recent_transactions(g.principal, limit)


@dashboard_bp.get("/top-products")
@require_auth
def top_products_route():
    """
    Best sellers by units sold.

    Query params:
    - limit: int (optional, default 5, max 100)
    """
    limit = request.args.get("limit", TOP_PRODUCTS_LIMIT, type=int)
    return get_storage().top_products(g.principal, limit)


@dashboard_bp.get("/low-stock")
@require_auth
def low_stock_route():
    return get_storage().low_stock_products(g.principal)
