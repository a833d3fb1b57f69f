from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class MostUsedDiscount(BaseModel):
    discount_id: int
    code: str
    name: str
    uses: int


class DiscountStats(BaseModel):
    total_discounts: int = 0

    active_discounts: int = 0
    not_yet_started_discounts: int = 0
    expired_discounts: int = 0
    used_up_discounts: int = 0
    disabled_discounts: int = 0

    total_redemptions: int = 0
    total_discount_amount: Decimal = Decimal("0.00")
    most_used: Optional[MostUsedDiscount] = None
