# Overview: Facade exposing one gated operation per capability over an injected session.

"""
Storage facade

Construct one per unit of work with the session it should use:

    storage = Storage(db.session, bcrypt_rounds=12, employee_limit=10)
    principal = storage.load_principal(user_id)
    storage.list_products(principal)

Every tenant operation takes the principal as its first argument and passes
through the authorization gate before any repository call. The tenant is
always the principal's business; nothing in a payload can change it.
Results are plain dicts and never include credentials.
"""

from __future__ import annotations

import logging

from ..permissions import ROLE_ADMIN
from ..validation import positive_limit, role
from .auth_service import CredentialStore
from .employee_service import DEFAULT_EMPLOYEE_LIMIT, EmployeeService
from .id_allocator import IdAllocator
from .ledger_service import TransactionLedger
from .permission_service import Principal, gated
from .reporting_service import MAX_REPORT_LIMIT, ReportingEngine
from .tenant_service import (
    BusinessRepository,
    CategoryRepository,
    CustomerRepository,
    ProductRepository,
)

logger = logging.getLogger(__name__)

RECENT_TRANSACTIONS_LIMIT = 10
TOP_PRODUCTS_LIMIT = 5


def _dicts(rows) -> list[dict]:
    return [row.to_dict() for row in rows]


class Storage:
    def __init__(self, session, *, bcrypt_rounds: int = 12, employee_limit: int = DEFAULT_EMPLOYEE_LIMIT):
        self.session = session
        self.ids = IdAllocator(session)
        self.businesses = BusinessRepository(session, self.ids)
        self.categories = CategoryRepository(session, self.ids)
        self.products = ProductRepository(session, self.ids)
        self.customers = CustomerRepository(session, self.ids)
        self.credentials = CredentialStore(session, self.ids, rounds=bcrypt_rounds)
        self.employees = EmployeeService(session, self.credentials, self.businesses, limit=employee_limit)
        self.ledger = TransactionLedger(session, self.ids)
        self.reports = ReportingEngine(session, self.products)

    # =========================================================================
    # Auth
    # =========================================================================

    def register_business(self, business: dict, admin: dict) -> tuple[dict, dict]:
        """Create a tenant and its first admin in one commit."""
        try:
            created = self.businesses.register(business, commit=False)
            user = self.credentials.create_user(
                created.id, {**(admin or {}), "role": ROLE_ADMIN}, commit=False
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("Registered business %s with admin user %s", created.id, user.id)
        return created.to_dict(), user.to_dict()

    def authenticate(self, identifier: str, password: str) -> dict:
        return self.credentials.authenticate(identifier, password).to_dict()

    def load_principal(self, user_id: int | None) -> Principal | None:
        return self.credentials.load_principal(user_id)

    @gated(admin=True)
    def create_user(self, principal: Principal, payload: dict) -> dict:
        """Admins may add admins; everyone else counts against the employee cap."""
        payload = dict(payload or {})
        if payload.get("role") is not None and role(payload["role"], "role") == ROLE_ADMIN:
            return self.credentials.create_user(principal.business_id, payload).to_dict()
        return self.employees.create_employee(principal.business_id, payload).to_dict()

    # =========================================================================
    # Business
    # =========================================================================

    @gated()
    def get_business(self, principal: Principal) -> dict:
        return self.businesses.get(principal.business_id, principal.business_id).to_dict()

    @gated()
    def list_businesses(self, principal: Principal) -> list[dict]:
        return _dicts(self.businesses.list(principal.business_id))

    @gated("settings")
    def update_business(self, principal: Principal, payload: dict) -> dict:
        return self.businesses.update(principal.business_id, principal.business_id, payload).to_dict()

    # =========================================================================
    # Categories
    # =========================================================================

    @gated("inventory")
    def list_categories(self, principal: Principal) -> list[dict]:
        return _dicts(self.categories.list(principal.business_id))

    @gated("inventory")
    def get_category(self, principal: Principal, category_id: int) -> dict:
        return self.categories.get(principal.business_id, category_id).to_dict()

    @gated("inventory")
    def create_category(self, principal: Principal, payload: dict) -> dict:
        return self.categories.create(principal.business_id, payload).to_dict()

    @gated("inventory")
    def update_category(self, principal: Principal, category_id: int, payload: dict) -> dict:
        return self.categories.update(principal.business_id, category_id, payload).to_dict()

    # =========================================================================
    # Products
    # =========================================================================

    @gated("inventory")
    def list_products(self, principal: Principal) -> list[dict]:
        return _dicts(self.products.list_active(principal.business_id))

    @gated("inventory")
    def get_product(self, principal: Principal, product_id: int) -> dict:
        return self.products.get(principal.business_id, product_id).to_dict()

    @gated("inventory")
    def create_product(self, principal: Principal, payload: dict) -> dict:
        return self.products.create(principal.business_id, payload).to_dict()

    @gated("inventory")
    def update_product(self, principal: Principal, product_id: int, payload: dict) -> dict:
        return self.products.update(principal.business_id, product_id, payload).to_dict()

    @gated("inventory")
    def deactivate_product(self, principal: Principal, product_id: int) -> dict:
        return self.products.deactivate(principal.business_id, product_id).to_dict()

    # =========================================================================
    # Customers
    # =========================================================================

    @gated("customers")
    def list_customers(self, principal: Principal) -> list[dict]:
        return _dicts(self.customers.list(principal.business_id))

    @gated("customers")
    def get_customer(self, principal: Principal, customer_id: int) -> dict:
        return self.customers.get(principal.business_id, customer_id).to_dict()

    @gated("customers")
    def create_customer(self, principal: Principal, payload: dict) -> dict:
        return self.customers.create(principal.business_id, payload).to_dict()

    @gated("customers")
    def update_customer(self, principal: Principal, customer_id: int, payload: dict) -> dict:
        return self.customers.update(principal.business_id, customer_id, payload).to_dict()

    # =========================================================================
    # Ledger
    # =========================================================================

    @gated("pos")
    def create_transaction(self, principal: Principal, header: dict, items: list) -> dict:
        txn = self.ledger.create_transaction(principal.business_id, principal.user_id, header, items)
        return txn.to_dict()

    @gated("reports")
    def list_transactions(self, principal: Principal, limit: int | None = None) -> list[dict]:
        return self.ledger.list_transactions(principal.business_id, limit)

    @gated("reports")
    def list_pending_transactions(self, principal: Principal) -> list[dict]:
        return self.ledger.find_incomplete(principal.business_id)

    @gated("pos")
    def get_transaction_with_items(self, principal: Principal, transaction_id: int) -> dict:
        return self.ledger.get_transaction_with_items(principal.business_id, transaction_id)

    # =========================================================================
    # Employees (admin only)
    # =========================================================================

    @gated(admin=True)
    def list_employees(self, principal: Principal) -> list[dict]:
        return _dicts(self.employees.list_employees(principal.business_id))

    @gated(admin=True)
    def count_employees(self, principal: Principal) -> int:
        return self.employees.count_employees(principal.business_id)

    @gated(admin=True)
    def create_employee(self, principal: Principal, payload: dict) -> dict:
        return self.employees.create_employee(principal.business_id, payload).to_dict()

    @gated(admin=True)
    def update_permissions(self, principal: Principal, user_id: int, permissions: dict) -> dict:
        return self.employees.update_permissions(principal.business_id, user_id, permissions).to_dict()

    @gated(admin=True)
    def toggle_active(self, principal: Principal, user_id: int) -> dict:
        return self.employees.toggle_active(principal.business_id, user_id).to_dict()

    @gated(admin=True)
    def delete_employee(self, principal: Principal, user_id: int) -> None:
        self.employees.delete_employee(principal.business_id, user_id)

    # =========================================================================
    # Reporting
    # =========================================================================

    @gated("reports")
    def dashboard_stats(self, principal: Principal) -> dict:
        return self.reports.dashboard_stats(principal.business_id)

    @gated("reports")
    def top_products(self, principal: Principal, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
        return self.reports.top_products(principal.business_id, limit)

    @gated("reports")
    def recent_transactions(self, principal: Principal, limit: int = RECENT_TRANSACTIONS_LIMIT) -> list[dict]:
        limit = positive_limit(limit, maximum=MAX_REPORT_LIMIT)
        return self.ledger.list_transactions(principal.business_id, limit)

    @gated("inventory")
    def low_stock_products(self, principal: Principal) -> list[dict]:
        return _dicts(self.reports.low_stock_products(principal.business_id))
