# Overview: Service-layer operations for auth; credentials, user creation, principal rehydration.

"""
Authentication Service with Multi-Tenant Support

WHY: Every action must be attributable. Uses bcrypt for password hashing.

MULTI-TENANT: Users belong to exactly one business (business_id). Login
accepts a username or an email; both are globally unique.

CREDENTIAL VARIANTS:
- HashedCredential: a bcrypt hash, verified with bcrypt.checkpw()
- LegacyPlaintextCredential: a plaintext password imported from the old
  system, compared in constant time and migrated to a hash on first
  successful login by migrate_credential()

SECURITY NOTES:
- Unknown identifiers still pay for one bcrypt comparison, so "no such user"
  and "wrong password" take comparable time and fail identically
- New users are always stored hashed
- Serialized users never include the credential
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from functools import lru_cache

import bcrypt
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import AuthenticationError, ValidationError
from ..models import User
from ..permissions import default_permissions_for
from ..time_utils import utcnow
from ..validation import MAX_PASSWORD_BYTES, USER_POLICY, validate_payload
from .permission_service import Principal

logger = logging.getLogger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
BCRYPT_HASH_LENGTH = 60


@dataclass(frozen=True)
class HashedCredential:
    value: str

    def matches(self, password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), self.value.encode("utf-8"))
        except ValueError:
            return False


@dataclass(frozen=True)
class LegacyPlaintextCredential:
    value: str

    def matches(self, password: str) -> bool:
        return hmac.compare_digest(self.value.encode("utf-8"), password.encode("utf-8"))


def classify_credential(stored: str) -> HashedCredential | LegacyPlaintextCredential:
    """Decide which variant a stored credential value is."""
    if stored and len(stored) == BCRYPT_HASH_LENGTH and stored.startswith(BCRYPT_PREFIXES):
        return HashedCredential(stored)
    return LegacyPlaintextCredential(stored or "")


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash password using bcrypt.

    Cost factor comes from BCRYPT_ROUNDS (12 unless configured).
    """
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


@lru_cache(maxsize=None)
def _timing_credential(rounds: int) -> HashedCredential:
    """Throwaway hash checked when there is no real bcrypt hash to check."""
    return HashedCredential(hash_password(secrets.token_hex(16), rounds))


class CredentialStore:
    """
    Authenticates users and owns everything that touches a password.
    """

    def __init__(self, session, allocator, *, rounds: int = 12):
        self.session = session
        self.allocator = allocator
        self.rounds = rounds

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, identifier: str, password: str) -> User:
        """
        Authenticate by username or email.

        Returns the User if credentials are valid and the account is active.
        Raises AuthenticationError otherwise, without saying why.
        """
        if not isinstance(identifier, str) or not isinstance(password, str):
            raise AuthenticationError()
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            # bcrypt cannot hash it, so a legacy credential this long cannot be migrated
            raise AuthenticationError()

        ident = identifier.strip()
        user = (
            self.session.query(User)
            .filter(
                or_(User.username == ident, User.email == ident.lower()),
                User.is_active.is_(True),
            )
            .first()
        )

        if user is None:
            _timing_credential(self.rounds).matches(password)
            raise AuthenticationError()

        credential = classify_credential(user.password_hash)
        if isinstance(credential, LegacyPlaintextCredential):
            # Pay the bcrypt cost here too so legacy rows do not answer faster
            _timing_credential(self.rounds).matches(password)
        if not credential.matches(password):
            raise AuthenticationError()

        if isinstance(credential, LegacyPlaintextCredential):
            self.migrate_credential(user, password, commit=False)

        user.last_login_at = utcnow()
        self.session.commit()
        return user

    def migrate_credential(self, user: User, password: str, *, commit: bool = True) -> None:
        """Replace a legacy plaintext credential with a bcrypt hash."""
        user.password_hash = hash_password(password, self.rounds)
        self.session.flush()
        logger.info("Migrated legacy credential for user %s", user.id)
        if commit:
            self.session.commit()

    def load_principal(self, user_id: int | None) -> Principal | None:
        """Rehydrate the session principal from the stored, active user."""
        if user_id is None:
            return None
        user = (
            self.session.query(User)
            .filter(User.id == user_id, User.is_active.is_(True))
            .first()
        )
        if user is None:
            return None
        return Principal.from_user(user)

    # ------------------------------------------------------------------
    # User creation
    # ------------------------------------------------------------------

    def create_user(self, business_id: int, payload: dict, *, commit: bool = True) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Permissions default by role when the payload has none:
        admin gets every flag, everyone else gets pos only.

        Raises:
            ValidationError: bad payload, or username/email already taken
        """
        patch = validate_payload(payload, USER_POLICY, partial=False)

        if patch.get("permissions") is None:
            patch["permissions"] = default_permissions_for(patch["role"])

        self._ensure_unique(patch["username"], patch["email"])

        # Hash password before it ever reaches the session
        patch["password_hash"] = hash_password(patch["password_hash"], self.rounds)

        user = User(**patch)
        user.business_id = business_id
        user.id = self.allocator.next_id("users")
        user.created_at = utcnow()

        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("Username or email already registered")
        if commit:
            self.session.commit()
        return user

    def _ensure_unique(self, username: str, email: str) -> None:
        existing = (
            self.session.query(User.id)
            .filter(or_(User.username == username, User.email == email))
            .first()
        )
        if existing:
            raise ValidationError("Username or email already registered")

