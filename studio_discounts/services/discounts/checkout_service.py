# studio_discounts/services/discounts/checkout_service.py

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.schemas.discounts.redemption_schemas import (
    EligibilityRequest,
    EligibilityResult,
    RedemptionDraft,
    RedeemRequest,
    RedeemOutcome,
)
from studio_discounts.services.discounts.discount_service import find_by_code
from studio_discounts.services.discounts.eligibility import evaluate
from studio_discounts.services.discounts.redemption_service import (
    commit_redemption,
    count_user_redemptions,
)
from studio_discounts.utils.logger import get_logger

logger = get_logger(__name__)


async def preview_discount(
    db: AsyncSession,
    payload: EligibilityRequest,
    now: datetime,
) -> EligibilityResult:
    """Look up the code and evaluate it. Reads only; never changes stored state."""
    definition = await find_by_code(db, payload.code)

    prior_user_uses = 0
    if (
        definition is not None
        and payload.user_id
        and definition.max_uses_per_user is not None
    ):
        # Not re-checked at commit: two simultaneous sessions for the same
        # member can each pass this and overshoot the per-user limit.
        prior_user_uses = await count_user_redemptions(db, payload.user_id, definition.id)

    return evaluate(definition, payload, now, prior_user_uses)


async def redeem_discount(
    db: AsyncSession,
    payload: RedeemRequest,
    user,
    now: datetime,
) -> RedeemOutcome:
    """Evaluate then commit, for callers that skip the separate preview step."""
    result = await preview_discount(db, payload, now)

    if not result.accepted:
        logger.info(
            "Redemption rejected",
            extra={"code": payload.code, "reason": result.reason},
        )
        return RedeemOutcome(
            applied=False,
            message=result.message,
            reason=result.reason,
            original_amount=result.original_amount,
            discount_amount=result.discount_amount,
            final_amount=result.final_amount,
        )

    draft = RedemptionDraft(
        user_id=payload.user_id,
        user_name=payload.user_name,
        user_email=payload.user_email,
        item_type=payload.item_type,
        item_id=payload.item_id,
        item_name=payload.item_name,
        original_amount=result.original_amount,
        discount_amount=result.discount_amount,
        final_amount=result.final_amount,
        notes=payload.notes,
    )
    record = await commit_redemption(db, result.discount_id, draft, user, now)

    return RedeemOutcome(
        applied=True,
        message=f"Discount applied: {result.display}",
        original_amount=record.original_amount,
        discount_amount=record.discount_amount,
        final_amount=record.final_amount,
        redemption=record,
    )
