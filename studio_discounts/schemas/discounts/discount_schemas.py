# studio_discounts/schemas/discounts/discount_schemas.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_scope import DiscountScope
from studio_discounts.models.enums.discount_status import DiscountStatus


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DiscountBase(BaseModel):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    kind: DiscountKind
    value: Decimal
    max_total_uses: Optional[int] = None
    max_uses_per_user: Optional[int] = None
    valid_from: datetime
    valid_until: Optional[datetime] = None
    scope: DiscountScope = DiscountScope.all
    specific_item_ids: List[str] = Field(default_factory=list)
    minimum_purchase_amount: Optional[Decimal] = None
    enabled: bool = True


class DiscountCreate(DiscountBase):
    pass


class DiscountUpdate(BaseModel):
    # unset fields are left alone; an explicit null clears an optional limit
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    kind: Optional[DiscountKind] = None
    value: Optional[Decimal] = None
    max_total_uses: Optional[int] = None
    max_uses_per_user: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    scope: Optional[DiscountScope] = None
    specific_item_ids: Optional[List[str]] = None
    minimum_purchase_amount: Optional[Decimal] = None
    enabled: Optional[bool] = None

    version: int


class DiscountOut(ORMBase):
    id: int
    code: str
    name: str
    description: Optional[str]

    kind: DiscountKind
    value: Decimal
    display: str

    max_total_uses: Optional[int]
    max_uses_per_user: Optional[int]
    current_uses: int

    valid_from: datetime
    valid_until: Optional[datetime]

    scope: DiscountScope
    specific_item_ids: List[str]
    minimum_purchase_amount: Optional[Decimal]

    enabled: bool
    status: DiscountStatus
    version: int

    created_at: datetime
    updated_at: Optional[datetime]

    created_by: Optional[int]
    updated_by: Optional[int]
    created_by_name: Optional[str]
    updated_by_name: Optional[str]


class DiscountListData(BaseModel):
    total: int
    items: List[DiscountOut]


class DiscountDeleteOut(BaseModel):
    deleted: bool
    disabled: bool
    discount: Optional[DiscountOut] = None
