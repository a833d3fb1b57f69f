# studio_discounts/routers/discounts/redemption_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.core.clock import Clock, get_clock
from studio_discounts.core.db import get_db
from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.schemas.discounts.redemption_schemas import (
    EligibilityRequest,
    EligibilityResult,
    RedemptionDraft,
    RedemptionOut,
    RedemptionListData,
    RedemptionCountOut,
    RedeemRequest,
    RedeemOutcome,
)
from studio_discounts.services.discounts.checkout_service import (
    preview_discount,
    redeem_discount,
)
from studio_discounts.services.discounts.redemption_service import (
    commit_redemption,
    count_user_redemptions,
    list_redemptions,
)
from studio_discounts.utils.check_roles import require_role, STAFF_ROLES
from studio_discounts.utils.response import APIResponse, success_response
from studio_discounts.utils.logger import get_logger

router = APIRouter(prefix="/discounts", tags=["Redemptions"])
logger = get_logger(__name__)


# =====================================================
# PREVIEW
# =====================================================
@router.post("/preview", response_model=APIResponse[EligibilityResult])
async def preview_discount_api(
    payload: EligibilityRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    data = await preview_discount(db, payload, clock())
    message = "Discount code is valid" if data.accepted else data.message
    return success_response(message, data)


# =====================================================
# ONE-SHOT REDEEM
# =====================================================
@router.post("/redeem", response_model=APIResponse[RedeemOutcome])
async def redeem_discount_api(
    payload: RedeemRequest,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    logger.info("Redeem discount", extra={"code": payload.code, "item_id": payload.item_id})
    data = await redeem_discount(db, payload, user, clock())
    return success_response(data.message, data)


# =====================================================
# COMMIT
# =====================================================
@router.post("/{discount_id}/redemptions", response_model=APIResponse[RedemptionOut])
async def commit_redemption_api(
    discount_id: int,
    payload: RedemptionDraft,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    logger.info("Commit redemption", extra={"discount_id": discount_id, "item_id": payload.item_id})
    data = await commit_redemption(db, discount_id, payload, user, clock())
    return success_response("Redemption recorded", data)


# =====================================================
# HISTORY
# =====================================================
@router.get("/{discount_id}/redemptions", response_model=APIResponse[RedemptionListData])
async def list_redemptions_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF_ROLES)),

    user_id: str | None = Query(None),
    item_type: ItemType | None = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    data = await list_redemptions(
        db,
        discount_id,
        user_id=user_id,
        item_type=item_type,
        page=page,
        page_size=page_size,
        order=order,
    )
    return success_response("Redemptions fetched successfully", data)


@router.get("/{discount_id}/redemptions/count", response_model=APIResponse[RedemptionCountOut])
async def count_user_redemptions_api(
    discount_id: int,
    user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    user=Depends(require_role(STAFF_ROLES)),
):
    uses = await count_user_redemptions(db, user_id, discount_id)
    return success_response(
        "Redemption count fetched successfully",
        RedemptionCountOut(discount_id=discount_id, user_id=user_id, uses=uses),
    )
