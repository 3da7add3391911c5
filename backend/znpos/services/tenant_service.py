# Overview: Tenant-scoped repositories; every query is built from one scope predicate.

"""
Multi-Tenant Repositories: Scoped CRUD for Tenant Data

Tenant scoping lives in one place. Every read and write goes through `_query()`, which
conjoins the tenant predicate with the caller's criteria.

SECURITY INVARIANTS:
1. Every query carries `business_id = tenant` (or `id = tenant` for Business)
2. A row owned by another tenant is reported exactly like a missing row
3. Ids come from the IdAllocator, never from the caller

USAGE:
    products = ProductRepository(session, allocator)
    product = products.create(business_id, {"name": "Tea", "price": "2.50"})
    products.get(business_id, product.id)
"""

from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..models import Business, Category, Customer, Product
from ..time_utils import utcnow
from ..validation import (
    BUSINESS_POLICY,
    CATEGORY_POLICY,
    CUSTOMER_POLICY,
    PRODUCT_POLICY,
    validate_payload,
)

logger = logging.getLogger(__name__)


class TenantRepository:
    """
    Generic CRUD for one tenant-scoped model.

    Subclasses set `model`, `namespace` (counter name) and `policy`
    (payload allowlist and coercion rules).
    """
    model = None
    namespace: str = ""
    policy = None
    not_found_message = "Not found"

    def __init__(self, session, allocator):
        self.session = session
        self.allocator = allocator

    # ------------------------------------------------------------------
    # Scoping
    # ------------------------------------------------------------------

    def _scope(self, business_id: int):
        return self.model.business_id == business_id

    def _query(self, business_id: int, *criteria):
        if business_id is None:
            raise ValueError("business_id is required for tenant-scoped queries")
        return self.session.query(self.model).filter(self._scope(business_id), *criteria)

    def _default_order(self):
        return (self.model.id.asc(),)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, business_id: int, payload: dict, *, commit: bool = True):
        patch = validate_payload(payload, self.policy, partial=False)
        self._check_references(business_id, patch)

        obj = self.model(**patch)
        self._stamp_owner(obj, business_id)
        obj.id = self.allocator.next_id(self.namespace)
        obj.created_at = utcnow()

        self.session.add(obj)
        self.session.flush()
        if commit:
            self.session.commit()
        return obj

    def find(self, business_id: int, entity_id: int):
        return self._query(business_id, self.model.id == entity_id).first()

    def get(self, business_id: int, entity_id: int):
        obj = self.find(business_id, entity_id)
        if obj is None:
            logger.info(
                "%s %s not found for business %s", self.namespace, entity_id, business_id
            )
            raise NotFoundError(self.not_found_message)
        return obj

    def list(self, business_id: int, *criteria, limit: int | None = None):
        query = self._query(business_id, *criteria).order_by(*self._default_order())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, business_id: int, *criteria) -> int:
        return self._query(business_id, *criteria).count()

    def update(self, business_id: int, entity_id: int, payload: dict, *, commit: bool = True):
        obj = self.get(business_id, entity_id)
        patch = validate_payload(payload, self.policy, partial=True)
        self._check_references(business_id, patch)

        for key, value in patch.items():
            setattr(obj, key, value)

        self.session.flush()
        if commit:
            self.session.commit()
        return obj

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _stamp_owner(self, obj, business_id: int) -> None:
        obj.business_id = business_id

    def _check_references(self, business_id: int, patch: dict) -> None:
        """Validate foreign ids in a patch belong to the same tenant."""


class BusinessRepository(TenantRepository):
    """The tenant root. Its scope is its own id."""
    model = Business
    namespace = "businesses"
    policy = BUSINESS_POLICY
    not_found_message = "Business not found"

    def _scope(self, business_id: int):
        return Business.id == business_id

    def _stamp_owner(self, obj, business_id: int) -> None:
        pass

    def register(self, payload: dict, *, commit: bool = True) -> Business:
        """Create a new tenant. Not scoped: the tenant does not exist yet."""
        patch = validate_payload(payload, self.policy, partial=False)
        business = Business(**patch)
        business.id = self.allocator.next_id(self.namespace)
        business.created_at = utcnow()
        self.session.add(business)
        self.session.flush()
        if commit:
            self.session.commit()
        return business

    def lock(self, business_id: int) -> Business:
        """Row-lock the tenant root for check-then-insert rules (employee cap)."""
        business = self._query(business_id).with_for_update().first()
        if business is None:
            raise NotFoundError(self.not_found_message)
        return business


class CategoryRepository(TenantRepository):
    model = Category
    namespace = "categories"
    policy = CATEGORY_POLICY
    not_found_message = "Category not found"

    def _default_order(self):
        return (Category.name.asc(), Category.id.asc())


class ProductRepository(TenantRepository):
    """
    Products: listings show active products only; low stock compares two
    columns of the same row in SQL (stock <= low_stock_threshold).
    """
    model = Product
    namespace = "products"
    policy = PRODUCT_POLICY
    not_found_message = "Product not found"

    def _default_order(self):
        return (Product.name.asc(), Product.id.asc())

    def list_active(self, business_id: int):
        return self.list(business_id, Product.is_active.is_(True))

    def low_stock(self, business_id: int):
        return (
            self._query(
                business_id,
                Product.is_active.is_(True),
                Product.stock <= Product.low_stock_threshold,
            )
            .order_by(Product.stock.asc(), Product.id.asc())
            .all()
        )

    def count_low_stock(self, business_id: int) -> int:
        return self.count(
            business_id,
            Product.is_active.is_(True),
            Product.stock <= Product.low_stock_threshold,
        )

    def deactivate(self, business_id: int, product_id: int, *, commit: bool = True) -> Product:
        product = self.get(business_id, product_id)
        product.is_active = False
        self.session.flush()
        if commit:
            self.session.commit()
        return product

    def _check_references(self, business_id: int, patch: dict) -> None:
        category_id = patch.get("category_id")
        if category_id is None:
            return
        exists = (
            self.session.query(Category.id)
            .filter(Category.business_id == business_id, Category.id == category_id)
            .first()
        )
        if exists is None:
            raise ValidationError("Unknown category_id")


class CustomerRepository(TenantRepository):
    model = Customer
    namespace = "customers"
    policy = CUSTOMER_POLICY
    not_found_message = "Customer not found"

    def _default_order(self):
        return (Customer.last_name.asc(), Customer.first_name.asc(), Customer.id.asc())
