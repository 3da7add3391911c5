# Overview: Employee management for one business (non-admin users).

"""
Employee Service

Employees are the users of a business whose role is not admin. A business
may hold at most `limit` of them (10 by default). The cap is checked while
the business row is locked, so two concurrent hires cannot both pass it.

Admins are never listed, counted, toggled or deleted here.
"""

from __future__ import annotations

import logging

from ..errors import CapacityExceededError, NotFoundError, ValidationError
from ..models import Transaction, User
from ..permissions import ROLE_ADMIN, ROLE_EMPLOYEE
from ..validation import permission_flags, role

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYEE_LIMIT = 10


class EmployeeService:
    def __init__(self, session, credentials, businesses, *, limit: int = DEFAULT_EMPLOYEE_LIMIT):
        self.session = session
        self.credentials = credentials
        self.businesses = businesses
        self.limit = limit

    def _query(self, business_id: int, *criteria):
        return self.session.query(User).filter(
            User.business_id == business_id,
            User.role != ROLE_ADMIN,
            *criteria,
        )

    def _get(self, business_id: int, user_id: int) -> User:
        user = self._query(business_id, User.id == user_id).first()
        if user is None:
            raise NotFoundError("Employee not found")
        return user

    def list_employees(self, business_id: int) -> list[User]:
        return self._query(business_id).order_by(User.id.asc()).all()

    def count_employees(self, business_id: int) -> int:
        return self._query(business_id).count()

    def create_employee(self, business_id: int, payload: dict) -> User:
        """
        Hire an employee.

        Raises:
            CapacityExceededError: business already has `limit` employees
            ValidationError: bad payload or an attempt to create an admin
        """
        payload = dict(payload or {})
        requested_role = role(payload.get("role", ROLE_EMPLOYEE), "role")
        if requested_role == ROLE_ADMIN:
            raise ValidationError("Employees must have role employee or manager")
        payload["role"] = requested_role
        payload["is_active"] = True

        self.businesses.lock(business_id)
        if self.count_employees(business_id) >= self.limit:
            self.session.rollback()
            raise CapacityExceededError(
                f"Maximum of {self.limit} employees allowed",
                details={"limit": self.limit},
            )

        try:
            return self.credentials.create_user(business_id, payload)
        except ValidationError:
            self.session.rollback()
            raise

    def update_permissions(self, business_id: int, user_id: int, permissions: dict) -> User:
        flags = permission_flags(permissions, "permissions")
        user = self._get(business_id, user_id)
        user.permissions = flags
        self.session.commit()
        return user

    def toggle_active(self, business_id: int, user_id: int) -> User:
        user = self._get(business_id, user_id)
        user.is_active = not user.is_active
        self.session.commit()
        logger.info(
            "Employee %s of business %s is now %s",
            user.id, business_id, "active" if user.is_active else "inactive",
        )
        return user

    def delete_employee(self, business_id: int, user_id: int) -> None:
        """
        Hard-delete a non-admin user. Admin targets are indistinguishable
        from missing ones.
        """
        user = self._get(business_id, user_id)
        has_sales = (
            self.session.query(Transaction.id)
            .filter(Transaction.business_id == business_id, Transaction.user_id == user.id)
            .first()
        )
        if has_sales:
            raise ValidationError("Employee has recorded transactions; deactivate instead")
        self.session.delete(user)
        self.session.commit()
        logger.info("Deleted employee %s of business %s", user_id, business_id)
