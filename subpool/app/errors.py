"""
errors.py — AppError base class and error code registry.

Every error returned by the SubPool API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

Error taxonomy → HTTP status:
  InvalidInput  400   missing/malformed fields, non-positive amounts
  Unauthorized  401   admin check failed
  NotFound      404   entity absent
  Conflict      409   uniqueness or capacity violation
  InvalidState  422   a precondition on stored data fails

Error codes are a contract. Messages are human-readable prose and may change.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the section header.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (400) ─────────────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    INVALID_MONTH              = "INVALID_MONTH"

    # ── Auth Errors (401) ──────────────────────────────────────────────────
    ADMIN_AUTH_REQUIRED        = "ADMIN_AUTH_REQUIRED"
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"
    TOKEN_INVALID              = "TOKEN_INVALID"
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    MEMBER_NOT_FOUND           = "MEMBER_NOT_FOUND"
    SERVICE_NOT_FOUND          = "SERVICE_NOT_FOUND"
    SUBSCRIPTION_NOT_FOUND     = "SUBSCRIPTION_NOT_FOUND"
    TRANSACTION_NOT_FOUND      = "TRANSACTION_NOT_FOUND"
    RESOURCE_NOT_FOUND         = "RESOURCE_NOT_FOUND"   # unknown URL

    # ── Method Errors (405) ────────────────────────────────────────────────
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_MEMBER_NAME      = "DUPLICATE_MEMBER_NAME"
    DUPLICATE_SERVICE_NAME     = "DUPLICATE_SERVICE_NAME"
    SERVICE_FULL               = "SERVICE_FULL"
    ALREADY_SUBSCRIBED         = "ALREADY_SUBSCRIBED"
    DUPLICATE_TRANSACTION      = "DUPLICATE_TRANSACTION"

    # ── Invalid State (422) ────────────────────────────────────────────────
    NO_ACTIVE_SUBSCRIBERS      = "NO_ACTIVE_SUBSCRIBERS"
    CAPACITY_BELOW_ACTIVE      = "CAPACITY_BELOW_ACTIVE"

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"


# ── Constructors per taxonomy category ─────────────────────────────────────
# Services raise through these so the code → status mapping lives in one place.

def not_found(code: str, message: str) -> AppError:
    return AppError(code, message, 404)


def conflict(code: str, message: str, field: str | None = None) -> AppError:
    return AppError(code, message, 409, field=field)


def invalid_state(code: str, message: str) -> AppError:
    return AppError(code, message, 422)


def invalid_input(code: str, message: str, field: str | None = None) -> AppError:
    return AppError(code, message, 400, field=field)


def unauthorized(code: str, message: str) -> AppError:
    return AppError(code, message, 401)
