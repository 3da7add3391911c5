from __future__ import annotations

from ..extensions import db
from ..money import format_bps
from ..time_utils import to_utc_z


class Business(db.Model):
    """
    Tenant root: every business is one tenant.

    All categories, products, customers, users and transactions carry the
    business id. `pk` is the storage row id; `id` comes from the counters
    table and is the only identifier exposed outside the store.
    """
    __tablename__ = "businesses"
    __table_args__ = {"sqlite_autoincrement": True}

    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.Integer, nullable=False, unique=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)

    # Basis points (e.g., 825 = 8.25%)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=825)
    currency = db.Column(db.String(8), nullable=False, default="BDT")
    timezone = db.Column(db.String(64), nullable=True)
    receipt_footer = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Business id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "tax_rate": format_bps(self.tax_rate_bps),
            "currency": self.currency,
            "timezone": self.timezone,
            "receipt_footer": self.receipt_footer,
            "created_at": to_utc_z(self.created_at),
        }


class Counter(db.Model):
    """
    Monotonic id source, one row per entity namespace.

    Only ever touched through IdAllocator.next_id, which increments and reads
    the row inside one transaction.
    """
    __tablename__ = "counters"

    namespace = db.Column(db.String(64), primary_key=True)
    seq = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Counter {self.namespace}={self.seq}>"
