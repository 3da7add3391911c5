# Overview: Service-layer operations for reporting; read-only aggregates per business.

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func

from ..models import Product, Transaction, TransactionItem
from ..money import format_cents
from ..time_utils import local_day_start_utc
from ..validation import positive_limit
from .ledger_service import STATUS_COMPLETED

MAX_REPORT_LIMIT = 100


def _growth_pct(current, previous) -> str:
    if not previous:
        return "0.00"
    pct = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return str(pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class ReportingEngine:
    """
    Dashboard queries. None of them write; all of them return zeroed or
    empty results when the business has no matching rows.
    """

    def __init__(self, session, products):
        self.session = session
        self.products = products

    def _sales_window(self, business_id: int, start: datetime, end: datetime | None = None) -> tuple[int, int]:
        query = self.session.query(
            func.coalesce(func.sum(Transaction.total_cents), 0),
            func.count(Transaction.id),
        ).filter(
            Transaction.business_id == business_id,
            Transaction.status == STATUS_COMPLETED,
            Transaction.created_at >= start,
        )
        if end is not None:
            query = query.filter(Transaction.created_at < end)
        total_cents, count = query.one()
        return int(total_cents or 0), int(count or 0)

    def dashboard_stats(self, business_id: int, *, now: datetime | None = None) -> dict:
        """
        Today's completed sales (server-local day), with growth versus
        yesterday. `now` must be timezone-aware when given.
        """
        today_start = local_day_start_utc(0, now)
        yesterday_start = local_day_start_utc(1, now)

        today_cents, today_count = self._sales_window(business_id, today_start)
        prev_cents, prev_count = self._sales_window(business_id, yesterday_start, today_start)

        today_avg = Decimal(today_cents) / today_count if today_count else Decimal(0)
        prev_avg = Decimal(prev_cents) / prev_count if prev_count else Decimal(0)

        return {
            "today_sales": format_cents(today_cents),
            "today_transactions": today_count,
            "average_sale": format_cents(today_avg.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
            "low_stock_count": self.products.count_low_stock(business_id),
            "today_growth": _growth_pct(today_cents, prev_cents),
            "transaction_growth": _growth_pct(today_count, prev_count),
            "average_growth": _growth_pct(today_avg, prev_avg),
        }

    def top_products(self, business_id: int, limit: int = 5) -> list[dict]:
        """
        Best sellers by units sold across completed transactions.
        Ties on units sold are broken by product id ascending.
        """
        limit = positive_limit(limit, maximum=MAX_REPORT_LIMIT)

        sold_count = func.sum(TransactionItem.quantity).label("sold_count")
        revenue = func.sum(TransactionItem.total_cents).label("revenue_cents")

        rows = (
            self.session.query(Product, sold_count, revenue)
            .join(TransactionItem, TransactionItem.product_id == Product.id)
            .join(Transaction, Transaction.id == TransactionItem.transaction_id)
            .filter(
                Transaction.business_id == business_id,
                Transaction.status == STATUS_COMPLETED,
                Product.business_id == business_id,
            )
            .group_by(Product.pk)
            .order_by(sold_count.desc(), Product.id.asc())
            .limit(limit)
            .all()
        )

        return [
            {
                **product.to_dict(),
                "sold_count": int(units or 0),
                "revenue": format_cents(revenue_cents),
            }
            for product, units, revenue_cents in rows
        ]

    def low_stock_products(self, business_id: int) -> list:
        return self.products.low_stock(business_id)
