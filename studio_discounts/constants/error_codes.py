from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- DISCOUNT CATALOG ----------------
    DISCOUNT_NOT_FOUND = "DISCOUNT_NOT_FOUND"
    DISCOUNT_CODE_EXISTS = "DISCOUNT_CODE_EXISTS"
    DISCOUNT_INVALID_CODE = "DISCOUNT_INVALID_CODE"
    DISCOUNT_INVALID_VALUE = "DISCOUNT_INVALID_VALUE"
    DISCOUNT_INVALID_RANGE = "DISCOUNT_INVALID_RANGE"
    DISCOUNT_INVALID_LIMIT = "DISCOUNT_INVALID_LIMIT"
    DISCOUNT_INVALID_SCOPE = "DISCOUNT_INVALID_SCOPE"
    DISCOUNT_VERSION_CONFLICT = "DISCOUNT_VERSION_CONFLICT"

    # ---------------- REDEMPTION LEDGER ----------------
    DISCOUNT_CONCURRENT_LIMIT_EXCEEDED = "DISCOUNT_CONCURRENT_LIMIT_EXCEEDED"
