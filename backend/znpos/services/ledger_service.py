# Overview: Service-layer operations for the sales ledger (transactions and their items).

"""
Transaction Ledger

WHY: Sales are append-only. A transaction and its items are written as one
database transaction: either the header and every item commit together, or
nothing does. There is no update or delete path.

TOTALS: Caller-supplied money fields are checked against the items:
- item total == unit_price * quantity
- subtotal == sum(item totals)
- total == subtotal + tax_amount
"""

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, ValidationError
from ..models import Customer, Product, Transaction, TransactionItem, User
from ..time_utils import utcnow
from ..validation import TRANSACTION_ITEM_POLICY, TRANSACTION_POLICY, positive_limit, validate_payload

logger = logging.getLogger(__name__)

TRANSACTION_STATUSES = ("completed", "pending", "cancelled", "refunded")
STATUS_COMPLETED = "completed"
STATUS_PENDING = "pending"


class TransactionLedger:
    def __init__(self, session, allocator):
        self.session = session
        self.allocator = allocator

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_transaction(self, business_id: int, user_id: int, header: dict, items: list) -> Transaction:
        """
        Record a sale with its line items in a single commit.

        Raises:
            ValidationError: malformed header/items, totals that do not add
                up, unknown customer/product, duplicate transaction number
        """
        patch = validate_payload(header, TRANSACTION_POLICY, partial=False)
        lines = self._validate_items(items)

        if patch["status"] not in TRANSACTION_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(TRANSACTION_STATUSES)}")

        self._check_totals(patch, lines)
        self._check_references(business_id, patch.get("customer_id"), lines)

        number = patch.get("transaction_number")
        if number is not None and self._number_taken(business_id, number):
            raise ValidationError("Transaction number already exists")

        try:
            txn = Transaction(**patch)
            txn.id = self.allocator.next_id("transactions")
            txn.business_id = business_id
            txn.user_id = user_id
            txn.created_at = utcnow()
            if number is None:
                txn.transaction_number = f"TXN-{int(time.time() * 1000)}-{txn.id}"

            self.session.add(txn)
            try:
                self.session.flush()
            except IntegrityError:
                raise ValidationError("Transaction number already exists")

            for line in lines:
                item = TransactionItem(**line)
                item.id = self.allocator.next_id("transaction_items")
                item.transaction_id = txn.id
                self.session.add(item)

            self.session.flush()
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Recorded transaction %s (%s) for business %s with %d item(s)",
            txn.id, txn.transaction_number, business_id, len(lines),
        )
        return txn

    def _validate_items(self, items) -> list[dict]:
        if not isinstance(items, list) or not items:
            raise ValidationError("A transaction needs at least one item")
        lines = []
        for index, raw in enumerate(items):
            try:
                lines.append(validate_payload(raw, TRANSACTION_ITEM_POLICY, partial=False))
            except ValidationError as e:
                raise ValidationError(f"items[{index}]: {e.message}")
        return lines

    def _check_totals(self, patch: dict, lines: list[dict]) -> None:
        mismatched = [
            i for i, line in enumerate(lines)
            if line["total_cents"] != line["unit_price_cents"] * line["quantity"]
        ]
        if mismatched:
            raise ValidationError(
                "Item total must equal unit_price * quantity",
                details={"items": mismatched},
            )

        items_sum = sum(line["total_cents"] for line in lines)
        if patch["subtotal_cents"] != items_sum:
            raise ValidationError("subtotal does not match the sum of item totals")

        if patch["total_cents"] != patch["subtotal_cents"] + patch["tax_amount_cents"]:
            raise ValidationError("total must equal subtotal + tax_amount")

    def _check_references(self, business_id: int, customer_id: int | None, lines: list[dict]) -> None:
        if customer_id is not None:
            customer = (
                self.session.query(Customer.id)
                .filter(Customer.business_id == business_id, Customer.id == customer_id)
                .first()
            )
            if customer is None:
                raise ValidationError("Unknown customer_id")

        product_ids = {line["product_id"] for line in lines}
        found = {
            pid for (pid,) in self.session.query(Product.id).filter(
                Product.business_id == business_id,
                Product.is_active.is_(True),
                Product.id.in_(product_ids),
            )
        }
        missing = sorted(product_ids - found)
        if missing:
            raise ValidationError("Unknown product_id", details={"product_ids": missing})

    def _number_taken(self, business_id: int, number: str) -> bool:
        return (
            self.session.query(Transaction.id)
            .filter(Transaction.business_id == business_id, Transaction.transaction_number == number)
            .first()
            is not None
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_transactions(self, business_id: int, limit: int | None = None, *, status: str | None = None) -> list[dict]:
        """Newest first, each with the cashier summary and the customer."""
        query = self.session.query(Transaction).filter(Transaction.business_id == business_id)
        if status is not None:
            query = query.filter(Transaction.status == status)
        query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        if limit is not None:
            query = query.limit(positive_limit(limit))
        transactions = query.all()

        users = self._users_by_id(business_id, {t.user_id for t in transactions})
        customers = self._customers_by_id(business_id, {t.customer_id for t in transactions if t.customer_id})

        rows = []
        for txn in transactions:
            row = txn.to_dict()
            user = users.get(txn.user_id)
            customer = customers.get(txn.customer_id)
            row["user"] = user.to_summary() if user else None
            row["customer"] = customer.to_dict() if customer else None
            rows.append(row)
        return rows

    def find_incomplete(self, business_id: int) -> list[dict]:
        return self.list_transactions(business_id, status=STATUS_PENDING)

    def get_transaction(self, business_id: int, transaction_id: int) -> Transaction:
        txn = (
            self.session.query(Transaction)
            .filter(Transaction.business_id == business_id, Transaction.id == transaction_id)
            .first()
        )
        if txn is None:
            raise NotFoundError("Transaction not found")
        return txn

    def get_transaction_with_items(self, business_id: int, transaction_id: int) -> dict:
        txn = self.get_transaction(business_id, transaction_id)

        rows = (
            self.session.query(TransactionItem, Product.name)
            .outerjoin(
                Product,
                (Product.id == TransactionItem.product_id) & (Product.business_id == business_id),
            )
            .filter(TransactionItem.transaction_id == txn.id)
            .order_by(TransactionItem.id.asc())
            .all()
        )

        result = txn.to_dict()
        result["items"] = [{**item.to_dict(), "product_name": name} for item, name in rows]

        user = self._users_by_id(business_id, {txn.user_id}).get(txn.user_id)
        result["user"] = user.to_summary() if user else None
        customer = None
        if txn.customer_id:
            customer = self._customers_by_id(business_id, {txn.customer_id}).get(txn.customer_id)
        result["customer"] = customer.to_dict() if customer else None
        return result

    def _users_by_id(self, business_id: int, ids: set) -> dict:
        if not ids:
            return {}
        users = self.session.query(User).filter(User.business_id == business_id, User.id.in_(ids)).all()
        return {u.id: u for u in users}

    def _customers_by_id(self, business_id: int, ids: set) -> dict:
        if not ids:
            return {}
        customers = (
            self.session.query(Customer)
            .filter(Customer.business_id == business_id, Customer.id.in_(ids))
            .all()
        )
        return {c.id: c for c in customers}
