"""
Capability System Constants and Definitions

Capability names used by the authorization gate and the permission flags.
A user's permissions are a fixed set of boolean flags, one per capability.

DESIGN PRINCIPLES:
- Capabilities are coarse (one per functional area)
- Admin implicitly holds every capability; the flags are ignored for admins
- Default role mappings follow principle of least privilege
"""

# =============================================================================
# ROLES
# =============================================================================

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_EMPLOYEE = "employee"

ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)


# =============================================================================
# CAPABILITY DEFINITIONS
# =============================================================================

# Each capability is defined as: (code, name, description)
CAPABILITY_DEFINITIONS = [
    ("pos", "Point of Sale", "Ring up sales and view invoices"),
    ("inventory", "Inventory", "Manage products, categories and stock alerts"),
    ("customers", "Customers", "Manage customer records"),
    ("reports", "Reports", "View dashboard statistics and transaction history"),
    ("employees", "Employees", "View employee records"),
    ("settings", "Settings", "Edit business settings"),
]

CAPABILITIES = tuple(code for code, _, _ in CAPABILITY_DEFINITIONS)


# =============================================================================
# DEFAULT ROLE PERMISSIONS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: {code: True for code in CAPABILITIES},
    ROLE_MANAGER: {code: code == "pos" for code in CAPABILITIES},
    ROLE_EMPLOYEE: {code: code == "pos" for code in CAPABILITIES},
}


def default_permissions_for(role: str) -> dict[str, bool]:
    """Fresh copy of the default flags for a role (employee defaults for unknown roles)."""
    return dict(DEFAULT_ROLE_PERMISSIONS.get(role, DEFAULT_ROLE_PERMISSIONS[ROLE_EMPLOYEE]))


def validate_capability(code: str) -> bool:
    return code in CAPABILITIES
