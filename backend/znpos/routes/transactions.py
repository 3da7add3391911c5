# Overview: Flask API routes for the sales ledger and invoices.

"""
Sales ledger routes.

POST /api/transactions body:
    {
        "transaction": {"subtotal": "20.00", "tax_amount": "1.65",
                        "total": "21.65", "payment_method": "cash"},
        "items": [{"product_id": 1, "quantity": 2,
                   "unit_price": "10.00", "total": "20.00"}]
    }

The cashier and the business come from the session, never from the body.
"""

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth
from ..errors import ValidationError

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api")


@transactions_bp.get("/transactions")
@require_auth
def list_transactions_route():
    """
    Newest first.

    Query params:
    - status: "pending" lists incomplete transactions only
    - limit: int (optional)
    """
    storage = get_storage()
    if request.args.get("status") == "pending":
        return storage.list_pending_transactions(g.principal)
    limit = request.args.get("limit", type=int)
    return storage.list_transactions(g.principal, limit)


@transactions_bp.post("/transactions")
@require_auth
def create_transaction_route():
    data = request.get_json(silent=True) or {}
    header = data.get("transaction")
    if not isinstance(header, dict):
        raise ValidationError("transaction must be an object")

    created = get_storage().create_transaction(g.principal, header, data.get("items"))
    return {**created, "invoice_id": created["id"]}, 201


@transactions_bp.get("/transactions/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int):
    return get_storage().get_transaction_with_items(g.principal, transaction_id)


@transactions_bp.get("/invoices/<int:transaction_id>")
@require_auth
def get_invoice_route(transaction_id: int):
    """Transaction with its items, cashier, customer and the issuing business."""
    storage = get_storage()
    invoice = storage.get_transaction_with_items(g.principal, transaction_id)
    invoice["business"] = storage.get_business(g.principal)
    invoice["payment_status"] = "Paid" if invoice["status"] == "completed" else "Pending"
    return invoice
