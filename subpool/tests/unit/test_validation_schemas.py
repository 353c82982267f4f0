"""
tests/unit/test_validation_schemas.py — Unit tests for all marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Every schema rejects invalid input with a ValidationError on the right field
  - Money fields are strict integers: floats and numeric strings are rejected
  - Messages that double as error codes match the constants in errors.py

No database. No Flask application context: schemas inherit from
marshmallow.Schema directly (not ma.Schema).
"""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from subpool.app.errors import ErrorCode
from subpool.app.models import INT_MAX
from subpool.app.schemas.auth_schema import AdminLoginSchema
from subpool.app.schemas.member_schema import CreateMemberSchema, DepositSchema
from subpool.app.schemas.service_schema import CreateServiceSchema, UpdateServiceSchema
from subpool.app.schemas.subscription_schema import (
    SubscriptionFilterSchema,
    SubscriptionSchema,
)
from subpool.app.schemas.transaction_schema import (
    CreateTransactionSchema,
    TransactionFilterSchema,
)


def _errors(schema, data) -> dict:
    with pytest.raises(ValidationError) as exc_info:
        schema.load(data)
    return exc_info.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# AdminLoginSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestAdminLoginSchema:

    def test_valid_payload(self):
        assert AdminLoginSchema().load({"password": "secret"}) == {"password": "secret"}

    def test_missing_password(self):
        assert "password" in _errors(AdminLoginSchema(), {})

    def test_empty_password(self):
        assert "password" in _errors(AdminLoginSchema(), {"password": ""})


# ═══════════════════════════════════════════════════════════════════════════
# Member schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateMemberSchema:

    def test_defaults_initial_balance_to_zero(self):
        result = CreateMemberSchema().load({"name": "alice"})
        assert result == {"name": "alice", "initial_balance": 0}

    def test_strips_name(self):
        assert CreateMemberSchema().load({"name": "  bob "})["name"] == "bob"

    def test_negative_initial_balance_is_allowed(self):
        result = CreateMemberSchema().load({"name": "carol", "initial_balance": -11677})
        assert result["initial_balance"] == -11677

    def test_whitespace_name_is_rejected(self):
        assert "name" in _errors(CreateMemberSchema(), {"name": "   "})

    def test_overlong_name_is_rejected(self):
        assert "name" in _errors(CreateMemberSchema(), {"name": "x" * 101})

    def test_float_balance_is_rejected(self):
        assert "initial_balance" in _errors(
            CreateMemberSchema(), {"name": "dave", "initial_balance": 10.5},
        )

    def test_unknown_field_is_rejected(self):
        assert "balance" in _errors(CreateMemberSchema(), {"name": "erin", "balance": 5})


class TestDepositSchema:

    def test_valid_payload(self):
        assert DepositSchema().load({"amount": 500}) == {"amount": 500}

    @pytest.mark.parametrize("amount", [0, -1, INT_MAX + 1])
    def test_out_of_range_amount_uses_invalid_amount_code(self, amount):
        assert _errors(DepositSchema(), {"amount": amount}) == {
            "amount": [ErrorCode.INVALID_AMOUNT],
        }

    def test_numeric_string_is_rejected(self):
        assert "amount" in _errors(DepositSchema(), {"amount": "500"})

    def test_missing_amount(self):
        messages = _errors(DepositSchema(), {})
        assert messages["amount"][0].startswith("Missing data for required field")


# ═══════════════════════════════════════════════════════════════════════════
# Service schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateServiceSchema:

    def test_defaults_capacity_to_one(self):
        result = CreateServiceSchema().load({"name": "spotify", "display_name": "Spotify"})
        assert result["max_members"] == 1

    def test_zero_capacity_is_rejected(self):
        assert "max_members" in _errors(
            CreateServiceSchema(),
            {"name": "spotify", "display_name": "Spotify", "max_members": 0},
        )

    def test_display_name_is_required(self):
        assert "display_name" in _errors(CreateServiceSchema(), {"name": "spotify"})


class TestUpdateServiceSchema:

    def test_partial_payload(self):
        assert UpdateServiceSchema().load({"max_members": 4}) == {"max_members": 4}

    def test_empty_payload_is_rejected(self):
        assert "_schema" in _errors(UpdateServiceSchema(), {})


# ═══════════════════════════════════════════════════════════════════════════
# SubscriptionSchema
# ═══════════════════════════════════════════════════════════════════════════

class TestSubscriptionSchema:

    def test_valid_payload(self):
        assert SubscriptionSchema().load({"member_id": 1, "service_id": 2}) == {
            "member_id": 1,
            "service_id": 2,
        }

    def test_ids_must_be_positive(self):
        messages = _errors(SubscriptionSchema(), {"member_id": 0, "service_id": -3})
        assert set(messages) == {"member_id", "service_id"}


class TestSubscriptionFilterSchema:

    def test_query_strings_are_coerced(self):
        result = SubscriptionFilterSchema().load({"member_id": "4", "active": "false"})
        assert result == {"member_id": 4, "active": False}

    def test_non_integer_id_is_rejected(self):
        assert "member_id" in _errors(SubscriptionFilterSchema(), {"member_id": "abc"})

    def test_unknown_active_flag_is_rejected(self):
        assert "active" in _errors(SubscriptionFilterSchema(), {"active": "maybe"})


# ═══════════════════════════════════════════════════════════════════════════
# Transaction schemas
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateTransactionSchema:

    def _payload(self, **overrides):
        payload = {"service_id": 1, "month": "2025-03", "total_amount": 16626}
        payload.update(overrides)
        return payload

    def test_valid_payload_defaults_description(self):
        result = CreateTransactionSchema().load(self._payload())
        assert result["description"] is None
        assert result["total_amount"] == 16626

    @pytest.mark.parametrize("month", ["2025-13", "2025-00", "2025-1", "2025-03-01", "2025-03\n"])
    def test_bad_month_uses_invalid_month_code(self, month):
        assert _errors(CreateTransactionSchema(), self._payload(month=month)) == {
            "month": [ErrorCode.INVALID_MONTH],
        }

    def test_zero_total_uses_invalid_amount_code(self):
        assert _errors(CreateTransactionSchema(), self._payload(total_amount=0)) == {
            "total_amount": [ErrorCode.INVALID_AMOUNT],
        }

    def test_float_total_is_rejected(self):
        assert "total_amount" in _errors(
            CreateTransactionSchema(), self._payload(total_amount=100.0),
        )


class TestTransactionFilterSchema:

    def test_query_strings_are_coerced(self):
        result = TransactionFilterSchema().load({"service_id": "3", "status": "PAID"})
        assert result == {"service_id": 3, "status": "PAID"}

    def test_unknown_status_is_rejected(self):
        assert "status" in _errors(TransactionFilterSchema(), {"status": "LATE"})
