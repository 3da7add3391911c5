# Overview: Flask API routes for employee management (admin only).

from flask import Blueprint, g, request

from ..decorators import get_storage, require_auth

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
@require_auth
def list_employees_route():
    return get_storage().list_employees(g.principal)


@employees_bp.post("")
@require_auth
def create_employee_route():
    """
    Hire an employee. Answers 409 once the business has reached its
    employee limit.
    """
    payload = request.get_json(silent=True) or {}
    return get_storage().create_employee(g.principal, payload), 201


@employees_bp.put("/<int:user_id>/permissions")
@require_auth
def update_permissions_route(user_id: int):
    data = request.get_json(silent=True) or {}
    return get_storage().update_permissions(g.principal, user_id, data.get("permissions"))


@employees_bp.put("/<int:user_id>/status")
@require_auth
def toggle_status_route(user_id: int):
    return get_storage().toggle_active(g.principal, user_id)


@employees_bp.delete("/<int:user_id>")
@require_auth
def delete_employee_route(user_id: int):
    get_storage().delete_employee(g.principal, user_id)
    return {"message": "Employee deleted successfully"}
