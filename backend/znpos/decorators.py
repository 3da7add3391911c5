# Overview: Request decorators for API routes; rehydrate the session principal.

from functools import wraps

from flask import current_app, g, session

from .errors import UnauthorizedError
from .extensions import db
from .services.storage import Storage


def get_storage() -> Storage:
    """Storage bound to the current database session."""
    return Storage(
        db.session,
        bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        employee_limit=current_app.config["EMPLOYEE_LIMIT"],
    )


def require_auth(f):
    """
    Require a logged-in session and establish the principal.

    Sets g.principal, rebuilt from the stored user on every request so a
    deactivated user or a permission change takes effect immediately.
    Only `user_id` is trusted from the signed session cookie.

    Returns 401 if there is no session or the user is gone or inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = get_storage().load_principal(session.get("user_id"))
        if principal is None:
            session.pop("user_id", None)
            err = UnauthorizedError("Authentication required")
            return err.to_dict(), err.status_code

        g.principal = principal
        return f(*args, **kwargs)

    return decorated_function
