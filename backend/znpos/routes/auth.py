# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

The signed session cookie carries only the user id. Role, business and
permissions are reloaded from the store on each request by @require_auth.
"""

from flask import Blueprint, g, request, session

from ..decorators import get_storage, require_auth

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/register")
def register_route():
    """
    Register a business and its first admin user, then log the admin in.

    Body: {"business": {...}, "user": {...}}
    """
    data = request.get_json(silent=True) or {}
    business, user = get_storage().register_business(data.get("business"), data.get("user"))

    session.clear()
    session.permanent = True
    session["user_id"] = user["id"]
    return {"user": user, "business": business}, 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by username or email.

    Unknown user, wrong password and inactive account all answer 401 with
    the same message.
    """
    data = request.get_json(silent=True) or {}
    identifier = data.get("username") or data.get("email") or data.get("identifier")
    password = data.get("password")

    storage = get_storage()
    user = storage.authenticate(identifier, password)

    session.clear()
    session.permanent = True
    session["user_id"] = user["id"]

    principal = storage.load_principal(user["id"])
    return {"user": user, "business": storage.get_business(principal)}


@auth_bp.post("/logout")
def logout_route():
    session.clear()
    return {"message": "Logged out"}


@auth_bp.get("/me")
@require_auth
def me_route():
    storage = get_storage()
    return {
        "user": g.principal.to_dict(),
        "business": storage.get_business(g.principal),
    }
