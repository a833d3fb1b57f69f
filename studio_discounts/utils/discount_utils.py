# studio_discounts/utils/discount_utils.py
import re
from decimal import Decimal, ROUND_HALF_UP

from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.utils.decimal_utils import to_decimal

CODE_MIN_LENGTH = 3
CODE_PATTERN = re.compile(r"^[A-Za-z0-9\-_]+$")


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def is_valid_code_format(code: str) -> bool:
    trimmed = (code or "").strip()
    if len(trimmed) < CODE_MIN_LENGTH:
        return False
    return bool(CODE_PATTERN.match(trimmed))


def format_discount_display(kind: DiscountKind, value: Decimal) -> str:
    if kind == DiscountKind.percentage:
        return f"{Decimal(value).normalize():f}% OFF"
    return f"${to_decimal(value)} OFF"


def calculate_savings_percentage(original_amount: Decimal, final_amount: Decimal) -> int:
    original_amount = to_decimal(original_amount)
    if original_amount <= 0:
        return 0
    # one rounding step, on the unrounded ratio
    saved = (original_amount - to_decimal(final_amount)) / original_amount * 100
    return int(saved.to_integral_value(rounding=ROUND_HALF_UP))
