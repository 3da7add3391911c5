from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import ValidationError
from .money import rate_to_bps, to_cents
from .permissions import CAPABILITIES, ROLES

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class FieldRule:
    """
    How one wire field is accepted:
    - column: model attribute the cleaned value is written to
    - coerce: callable(value, field_name) -> cleaned value
    - nullable: whether an explicit null is accepted
    """
    column: str
    coerce: Callable[[Any, str], Any]
    nullable: bool = True


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for create
    - defaults: wire-level defaults applied on create when a field is absent
    """
    fields: dict[str, FieldRule]
    required_on_create: frozenset = frozenset()
    defaults: dict = field(default_factory=dict)


# =============================================================================
# Coercers
# =============================================================================

def string(max_length: int | None = None, *, blank: bool = False):
    def _coerce(value, name):
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationError(f"{name} must be a string")
        s = str(value).strip()
        if not s and not blank:
            raise ValidationError(f"{name} cannot be blank")
        if max_length and len(s) > max_length:
            raise ValidationError(f"{name} exceeds max length {max_length}")
        return s
    return _coerce


def email(value, name):
    s = string(255)(value, name).lower()
    if not EMAIL_RE.match(s):
        raise ValidationError(f"{name} must be a valid email address")
    return s


def integer(minimum: int | None = None):
    def _coerce(value, name):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            result = value
        elif isinstance(value, str):
            stripped = value.strip()
            # Plain digits only: no decimals, no scientific notation
            if not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{name} must be an integer")
            result = int(stripped)
        else:
            raise ValidationError(f"{name} must be an integer")
        if minimum is not None and result < minimum:
            raise ValidationError(f"{name} must be >= {minimum}")
        return result
    return _coerce


def boolean(value, name):
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{name} must be true or false")


def money(value, name):
    return to_cents(value, name)


def rate(value, name):
    return rate_to_bps(value, name)


def role(value, name):
    s = string(16)(value, name).lower()
    if s not in ROLES:
        raise ValidationError(f"{name} must be one of: {', '.join(ROLES)}")
    return s


def permission_flags(value, name):
    """Full capability map; absent capabilities are False."""
    if not isinstance(value, dict):
        raise ValidationError(f"{name} must be an object")
    unknown = set(value) - set(CAPABILITIES)
    if unknown:
        raise ValidationError(f"Unknown permission: {', '.join(sorted(unknown))}")
    flags = {}
    for code in CAPABILITIES:
        flag = value.get(code, False)
        if not isinstance(flag, bool):
            raise ValidationError(f"{name}.{code} must be true or false")
        flags[code] = flag
    return flags


def positive_limit(value, name="limit", maximum: int | None = None) -> int:
    """Row limit for listings; clamped to `maximum` when one is given."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    if maximum is not None:
        return min(value, maximum)
    return value


def password(value, name):
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
    return value


# =============================================================================
# Policies
# =============================================================================

BUSINESS_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldRule("name", string(255), nullable=False),
        "email": FieldRule("email", email, nullable=False),
        "phone": FieldRule("phone", string(64, blank=True)),
        "address": FieldRule("address", string(blank=True)),
        "tax_rate": FieldRule("tax_rate_bps", rate, nullable=False),
        "currency": FieldRule("currency", string(8), nullable=False),
        "timezone": FieldRule("timezone", string(64, blank=True)),
        "receipt_footer": FieldRule("receipt_footer", string(blank=True)),
    },
    required_on_create=frozenset({"name", "email"}),
    defaults={"tax_rate": "0.0825", "currency": "BDT"},
)

USER_POLICY = ModelValidationPolicy(
    fields={
        "username": FieldRule("username", string(64), nullable=False),
        "email": FieldRule("email", email, nullable=False),
        "password": FieldRule("password_hash", password, nullable=False),
        "first_name": FieldRule("first_name", string(120), nullable=False),
        "last_name": FieldRule("last_name", string(120), nullable=False),
        "role": FieldRule("role", role, nullable=False),
        "is_active": FieldRule("is_active", boolean, nullable=False),
        "permissions": FieldRule("permissions", permission_flags),
    },
    required_on_create=frozenset({"username", "email", "password", "first_name", "last_name"}),
    defaults={"role": "employee", "is_active": True},
)

CATEGORY_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldRule("name", string(120), nullable=False),
        "description": FieldRule("description", string(blank=True)),
    },
    required_on_create=frozenset({"name"}),
)

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "category_id": FieldRule("category_id", integer(1)),
        "name": FieldRule("name", string(255), nullable=False),
        "description": FieldRule("description", string(blank=True)),
        "sku": FieldRule("sku", string(64)),
        "barcode": FieldRule("barcode", string(64)),
        "price": FieldRule("price_cents", money, nullable=False),
        "cost": FieldRule("cost_cents", money, nullable=False),
        "stock": FieldRule("stock", integer(0), nullable=False),
        "low_stock_threshold": FieldRule("low_stock_threshold", integer(0), nullable=False),
        "is_active": FieldRule("is_active", boolean, nullable=False),
    },
    required_on_create=frozenset({"name", "price"}),
    defaults={"cost": "0.00", "stock": 0, "low_stock_threshold": 5, "is_active": True},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    fields={
        "first_name": FieldRule("first_name", string(120), nullable=False),
        "last_name": FieldRule("last_name", string(120), nullable=False),
        "email": FieldRule("email", email),
        "phone": FieldRule("phone", string(64, blank=True)),
        "address": FieldRule("address", string(blank=True)),
        "loyalty_points": FieldRule("loyalty_points", integer(0), nullable=False),
        "total_spent": FieldRule("total_spent_cents", money, nullable=False),
    },
    required_on_create=frozenset({"first_name", "last_name"}),
    defaults={"loyalty_points": 0, "total_spent": "0.00"},
)

TRANSACTION_POLICY = ModelValidationPolicy(
    fields={
        "customer_id": FieldRule("customer_id", integer(1)),
        "transaction_number": FieldRule("transaction_number", string(64), nullable=False),
        "subtotal": FieldRule("subtotal_cents", money, nullable=False),
        "tax_amount": FieldRule("tax_amount_cents", money, nullable=False),
        "total": FieldRule("total_cents", money, nullable=False),
        "payment_method": FieldRule("payment_method", string(32), nullable=False),
        "status": FieldRule("status", string(16), nullable=False),
    },
    required_on_create=frozenset({"subtotal", "total", "payment_method"}),
    defaults={"tax_amount": "0.00", "status": "completed"},
)

TRANSACTION_ITEM_POLICY = ModelValidationPolicy(
    fields={
        "product_id": FieldRule("product_id", integer(1), nullable=False),
        "quantity": FieldRule("quantity", integer(1), nullable=False),
        "unit_price": FieldRule("unit_price_cents", money, nullable=False),
        "total": FieldRule("total_cents", money, nullable=False),
    },
    required_on_create=frozenset({"product_id", "quantity", "unit_price", "total"}),
)


def validate_payload(payload: dict, policy: ModelValidationPolicy, *, partial: bool) -> dict:
    """
    Validates + normalizes an incoming payload against a policy.
    Returns a cleaned patch dict keyed by model column.

    partial=False: create semantics (enforce required_on_create, apply defaults)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        payload = {**policy.defaults, **payload}

    patch: dict = {}
    for k, raw in payload.items():
        rule = policy.fields[k]
        if raw is None:
            if not rule.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[rule.column] = None
            continue
        patch[rule.column] = rule.coerce(raw, k)

    return patch
