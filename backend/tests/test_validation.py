# Overview: Pytest coverage for payload validation and money conversion.

import pytest

from znpos.errors import ValidationError
from znpos.money import format_bps, format_cents, rate_to_bps, to_cents
from znpos.validation import PRODUCT_POLICY, USER_POLICY, positive_limit, validate_payload


class TestMoney:

    @pytest.mark.parametrize("value,cents", [("10.00", 1000), ("0.5", 50), (3, 300), ("1.005", 101)])
    def test_to_cents(self, value, cents):
        assert to_cents(value) == cents

    @pytest.mark.parametrize("value", ["-1.00", "abc", None, True, "NaN", "Infinity", "10000000.00"])
    def test_to_cents_rejects(self, value):
        with pytest.raises(ValidationError):
            to_cents(value)

    def test_formatting(self):
        assert format_cents(2165) == "21.65"
        assert format_cents(None) == "0.00"
        assert format_bps(rate_to_bps("0.0825")) == "0.0825"

    @pytest.mark.parametrize("value", ["1", "1.2", "-0.01"])
    def test_rate_bounds(self, value):
        with pytest.raises(ValidationError):
            rate_to_bps(value)


class TestPositiveLimit:

    def test_clamps_to_maximum(self):
        assert positive_limit(7) == 7
        assert positive_limit(500, maximum=100) == 100

    @pytest.mark.parametrize("value", [0, -1, "3", 2.0, True, None])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            positive_limit(value)


class TestValidatePayload:

    def test_create_applies_defaults(self):
        patch = validate_payload({"name": " Tea ", "price": "2.50"}, PRODUCT_POLICY, partial=False)

        assert patch["name"] == "Tea"
        assert patch["price_cents"] == 250
        assert patch["cost_cents"] == 0
        assert patch["stock"] == 0
        assert patch["low_stock_threshold"] == 5
        assert patch["is_active"] is True

    def test_partial_only_touches_given_fields(self):
        assert validate_payload({"stock": "7"}, PRODUCT_POLICY, partial=True) == {"stock": 7}

    def test_missing_required(self):
        with pytest.raises(ValidationError) as exc:
            validate_payload({"name": "Tea"}, PRODUCT_POLICY, partial=False)
        assert "price" in exc.value.message

    @pytest.mark.parametrize("payload", [
        {"stock": -1},
        {"stock": "1.5"},
        {"name": ""},
        {"name": None},
        {"is_active": "false"},
        {"unknown": 1},
    ])
    def test_rejects(self, payload):
        with pytest.raises(ValidationError):
            validate_payload(payload, PRODUCT_POLICY, partial=True)

    def test_non_object_payload(self):
        with pytest.raises(ValidationError):
            validate_payload(["name"], PRODUCT_POLICY, partial=True)

    def test_user_email_is_normalized(self):
        patch = validate_payload({"email": " Someone@Example.COM "}, USER_POLICY, partial=True)
        assert patch["email"] == "someone@example.com"

    def test_password_length_is_counted_in_bytes(self):
        assert validate_payload({"password": "ü" * 36}, USER_POLICY, partial=True)["password_hash"] == "ü" * 36
        with pytest.raises(ValidationError):
            validate_payload({"password": "ü" * 37}, USER_POLICY, partial=True)

    def test_role_is_lowercased(self):
        assert validate_payload({"role": " Manager "}, USER_POLICY, partial=True) == {"role": "manager"}

    def test_bad_role(self):
        with pytest.raises(ValidationError):
            validate_payload({"role": "overlord"}, USER_POLICY, partial=True)
