# studio_discounts/schemas/discounts/redemption_schemas.py

from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.models.enums.rejection_reason import RejectionReason
from studio_discounts.utils.decimal_utils import to_decimal, ZERO


# =====================================================
# PREVIEW (eligibility)
# =====================================================
class EligibilityRequest(BaseModel):
    code: str
    item_type: ItemType
    # same limits as the ledger columns a redemption is recorded into
    item_id: str = Field(..., max_length=100)
    # whole cents only; the amount is recorded exactly as sent
    purchase_amount: Decimal = Field(..., ge=0, decimal_places=2)
    user_id: Optional[str] = Field(None, max_length=100)


class EligibilityResult(BaseModel):
    accepted: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None

    discount_id: Optional[int] = None
    code: Optional[str] = None
    display: Optional[str] = None

    original_amount: Decimal
    discount_amount: Decimal = ZERO
    final_amount: Decimal
    savings_percentage: int = 0


# =====================================================
# COMMIT (ledger)
# =====================================================
class RedemptionDraft(BaseModel):
    user_id: Optional[str] = Field(None, max_length=100)
    user_name: Optional[str] = Field(None, max_length=150)
    user_email: Optional[str] = Field(None, max_length=255)

    item_type: ItemType
    item_id: str = Field(..., max_length=100)
    item_name: str = Field(..., max_length=200)

    original_amount: Decimal = Field(..., ge=0)
    discount_amount: Decimal = Field(..., ge=0)
    final_amount: Decimal = Field(..., ge=0)

    notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def _amounts_consistent(self):
        self.original_amount = to_decimal(self.original_amount)
        self.discount_amount = to_decimal(self.discount_amount)
        self.final_amount = to_decimal(self.final_amount)

        if self.discount_amount > self.original_amount:
            raise ValueError("discount_amount cannot exceed original_amount")
        if self.original_amount - self.discount_amount != self.final_amount:
            raise ValueError("final_amount must equal original_amount - discount_amount")
        return self


class RedemptionOut(BaseModel):
    id: int
    discount_id: int
    code: str

    user_id: Optional[str]
    user_name: Optional[str]
    user_email: Optional[str]

    item_type: ItemType
    item_id: str
    item_name: str

    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    used_at: datetime
    processed_by: Optional[int]
    processed_by_name: str
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class RedemptionListData(BaseModel):
    total: int
    items: List[RedemptionOut]


class RedemptionCountOut(BaseModel):
    discount_id: int
    user_id: str
    uses: int


# =====================================================
# ONE-SHOT REDEEM
# =====================================================
class RedeemRequest(EligibilityRequest):
    item_name: str = Field(..., max_length=200)
    user_name: Optional[str] = Field(None, max_length=150)
    user_email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=500)


class RedeemOutcome(BaseModel):
    applied: bool
    message: str
    reason: Optional[RejectionReason] = None

    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    redemption: Optional[RedemptionOut] = None
