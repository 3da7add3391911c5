from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z


class Transaction(db.Model):
    """
    Sales transaction header (ledger entry).

    Immutable: there is no update path. Its items are written in the same
    database transaction as the header.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("business_id", "transaction_number", name="uq_transactions_business_number"),
        # Composite index for dashboard queries by status and date
        db.Index("ix_transactions_business_status_created", "business_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.Integer, nullable=False, unique=True, index=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # Human-readable number (e.g., "TXN-1718000000000")
    transaction_number = db.Column(db.String(64), nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} number={self.transaction_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "transaction_number": self.transaction_number,
            "subtotal": format_cents(self.subtotal_cents),
            "tax_amount": format_cents(self.tax_amount_cents),
            "total": format_cents(self.total_cents),
            "payment_method": self.payment_method,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class TransactionItem(db.Model):
    """Line item owned by exactly one transaction."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transaction_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.Integer, nullable=False, unique=True, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_cents(self.unit_price_cents),
            "total": format_cents(self.total_cents),
        }
