# Overview: Pytest coverage for authentication and legacy credential migration.

"""
Credential Store Tests

Verifies:
- Login by username or email, active users only
- Unknown user and wrong password fail identically
- New credentials are always bcrypt hashes and never serialized
- Legacy plaintext credentials are migrated exactly once, on first success
"""

import pytest

from znpos.errors import AuthenticationError, ValidationError
from znpos.models import Business, User
from znpos.services.auth_service import (
    CredentialStore,
    HashedCredential,
    LegacyPlaintextCredential,
    classify_credential,
    hash_password,
)

PASSWORD_A = "secret-a1"


def _legacy_user(db_session, storage, business_id, username, plaintext):
    user = User(
        id=storage.ids.next_id("users"),
        business_id=business_id,
        username=username,
        email=f"{username}@legacy.test",
        password_hash=plaintext,
        first_name="Lee",
        last_name="Gacy",
        role="employee",
        is_active=True,
        permissions={"pos": True},
    )
    db_session.add(user)
    db_session.commit()
    return user


class TestClassifyCredential:

    def test_bcrypt_hash_is_hashed(self):
        assert isinstance(classify_credential(hash_password("abcdef", rounds=4)), HashedCredential)

    @pytest.mark.parametrize("stored", ["hunter22", "", "$2b$short", "x" * 60])
    def test_anything_else_is_legacy(self, stored):
        assert isinstance(classify_credential(stored), LegacyPlaintextCredential)

    def test_legacy_matches_exact_text_only(self):
        credential = LegacyPlaintextCredential("open-sesame")
        assert credential.matches("open-sesame")
        assert not credential.matches("Open-sesame")


class TestAuthenticate:

    def test_login_by_username(self, storage, tenant_a):
        user = storage.authenticate("admin_a", PASSWORD_A)
        assert user["id"] == tenant_a[1]["id"]
        assert user["last_login_at"] is not None

    def test_login_by_email_ignores_case_and_whitespace(self, storage, tenant_a):
        user = storage.authenticate("  ADMIN@acme.test ", PASSWORD_A)
        assert user["username"] == "admin_a"

    def test_wrong_password_and_unknown_user_fail_alike(self, storage, tenant_a):
        with pytest.raises(AuthenticationError) as wrong:
            storage.authenticate("admin_a", "not-the-password")
        with pytest.raises(AuthenticationError) as unknown:
            storage.authenticate("nobody", "not-the-password")

        assert wrong.value.to_dict() == unknown.value.to_dict()

    def test_non_string_input_fails(self, storage, tenant_a):
        with pytest.raises(AuthenticationError):
            storage.authenticate(None, PASSWORD_A)

    def test_inactive_user_cannot_login(self, storage, admin_a, cashier_a):
        storage.toggle_active(admin_a, cashier_a.user_id)

        with pytest.raises(AuthenticationError):
            storage.authenticate("cashier_a", "till-pass")

    def test_serialized_user_has_no_credential(self, storage, tenant_a):
        user = storage.authenticate("admin_a", PASSWORD_A)
        assert "password" not in user
        assert "password_hash" not in user


class TestCredentialStorage:

    def test_new_users_are_hashed(self, db_session, tenant_a):
        row = db_session.query(User).filter_by(id=tenant_a[1]["id"]).one()
        assert row.password_hash != PASSWORD_A
        assert isinstance(classify_credential(row.password_hash), HashedCredential)

    def test_duplicate_username_rejected(self, storage, admin_a, tenant_b):
        with pytest.raises(ValidationError):
            storage.create_employee(admin_a, {
                "username": "admin_b",
                "email": "fresh@acme.test",
                "password": "secret-x",
                "first_name": "Dup",
                "last_name": "Licate",
            })

    def test_short_password_rejected(self, storage, admin_a):
        with pytest.raises(ValidationError):
            storage.create_employee(admin_a, {
                "username": "shorty",
                "email": "shorty@acme.test",
                "password": "123",
                "first_name": "Short",
                "last_name": "Pass",
            })

    @pytest.mark.parametrize("password", ["x" * 73, "é" * 40])
    def test_password_over_72_bytes_rejected(self, storage, db_session, admin_a, password):
        with pytest.raises(ValidationError) as exc:
            storage.create_employee(admin_a, {
                "username": "longpass",
                "email": "longpass@acme.test",
                "password": password,
                "first_name": "Long",
                "last_name": "Pass",
            })

        assert "72 bytes" in exc.value.message
        assert db_session.query(User).filter_by(username="longpass").first() is None

    def test_password_of_exactly_72_bytes_accepted(self, storage, admin_a):
        storage.create_employee(admin_a, {
            "username": "edgepass",
            "email": "edgepass@acme.test",
            "password": "x" * 72,
            "first_name": "Edge",
            "last_name": "Pass",
        })

        assert storage.authenticate("edgepass", "x" * 72)["username"] == "edgepass"

    def test_duplicate_caught_at_insert_is_validation_error(self, monkeypatch, storage, db_session, admin_a, tenant_b):
        """Two writers can both pass the lookup; the unique constraint still answers 400."""
        monkeypatch.setattr(CredentialStore, "_ensure_unique", lambda self, username, email: None)

        with pytest.raises(ValidationError):
            storage.create_employee(admin_a, {
                "username": "admin_b",
                "email": "fresh@acme.test",
                "password": "secret-x",
                "first_name": "Dup",
                "last_name": "Licate",
            })

        assert db_session.query(User).filter_by(username="admin_b").count() == 1
        assert storage.authenticate("admin_a", PASSWORD_A)["username"] == "admin_a"

    def test_registration_is_atomic(self, storage, db_session, tenant_a):
        """A failed admin insert leaves no orphan business behind."""
        with pytest.raises(ValidationError):
            storage.register_business(
                {"name": "Orphan Co", "email": "orphan@co.test"},
                {
                    "username": "admin_a",
                    "email": "other@co.test",
                    "password": "secret-o",
                    "first_name": "Or",
                    "last_name": "Phan",
                },
            )

        names = [b.name for b in db_session.query(Business).all()]
        assert names == ["Acme Corner Shop"]

    def test_registered_admin_has_every_permission(self, tenant_a):
        admin = tenant_a[1]
        assert admin["role"] == "admin"
        assert all(admin["permissions"].values())


class TestLegacyMigration:

    def test_legacy_login_migrates_once(self, monkeypatch, storage, db_session, tenant_a):
        legacy = _legacy_user(db_session, storage, tenant_a[0]["id"], "oldtimer", "plain-pass")

        calls = []
        original = CredentialStore.migrate_credential

        def spy(self, user, password, **kwargs):
            calls.append(user.id)
            return original(self, user, password, **kwargs)

        monkeypatch.setattr(CredentialStore, "migrate_credential", spy)

        storage.authenticate("oldtimer", "plain-pass")
        row = db_session.query(User).filter_by(id=legacy.id).one()
        assert isinstance(classify_credential(row.password_hash), HashedCredential)

        storage.authenticate("oldtimer", "plain-pass")
        assert calls == [legacy.id]

    def test_failed_legacy_login_keeps_plaintext(self, storage, db_session, tenant_a):
        legacy = _legacy_user(db_session, storage, tenant_a[0]["id"], "oldtimer", "plain-pass")

        with pytest.raises(AuthenticationError):
            storage.authenticate("oldtimer", "wrong-pass")

        row = db_session.query(User).filter_by(id=legacy.id).one()
        assert row.password_hash == "plain-pass"

    def test_overlong_legacy_credential_fails_cleanly(self, storage, db_session, tenant_a):
        plaintext = "p" * 80
        legacy = _legacy_user(db_session, storage, tenant_a[0]["id"], "longtimer", plaintext)

        with pytest.raises(AuthenticationError):
            storage.authenticate("longtimer", plaintext)

        row = db_session.query(User).filter_by(id=legacy.id).one()
        assert row.password_hash == plaintext


class TestPrincipal:

    def test_principal_comes_from_stored_user(self, storage, admin_a, cashier_a):
        storage.update_permissions(admin_a, cashier_a.user_id, {"pos": True, "reports": True})

        principal = storage.load_principal(cashier_a.user_id)
        assert principal.business_id == admin_a.business_id
        assert principal.role == "employee"
        assert principal.permissions["reports"] is True
        assert principal.permissions["inventory"] is False

    def test_inactive_or_missing_user_has_no_principal(self, storage, admin_a, cashier_a):
        storage.toggle_active(admin_a, cashier_a.user_id)

        assert storage.load_principal(cashier_a.user_id) is None
        assert storage.load_principal(424242) is None
        assert storage.load_principal(None) is None
