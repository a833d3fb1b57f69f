# studio_discounts/services/discounts/redemption_service.py

from datetime import datetime

from sqlalchemy import select, func, update, or_, asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.models.discounts.discount_models import DiscountCode
from studio_discounts.models.discounts.redemption_models import DiscountRedemption
from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.schemas.discounts.redemption_schemas import (
    RedemptionDraft,
    RedemptionOut,
    RedemptionListData,
)
from studio_discounts.core.clock import as_utc
from studio_discounts.core.exceptions import AppException
from studio_discounts.constants.error_codes import ErrorCode
from studio_discounts.constants.activity_codes import ActivityCode
from studio_discounts.utils.activity_helpers import emit_activity, actor_context
from studio_discounts.utils.decimal_utils import to_decimal
from studio_discounts.utils.logger import get_logger

logger = get_logger(__name__)

CONCURRENT_LIMIT_MESSAGE = (
    "This discount code was used up while the sale was processing. "
    "Please re-check and try again."
)


# =====================================================
# MAPPER
# =====================================================
def _map_redemption(record: DiscountRedemption) -> RedemptionOut:
    return RedemptionOut(
        id=record.id,
        discount_id=record.discount_id,
        code=record.code,
        user_id=record.user_id,
        user_name=record.user_name,
        user_email=record.user_email,
        item_type=record.item_type,
        item_id=record.item_id,
        item_name=record.item_name,
        original_amount=to_decimal(record.original_amount),
        discount_amount=to_decimal(record.discount_amount),
        final_amount=to_decimal(record.final_amount),
        used_at=as_utc(record.used_at),
        processed_by=record.processed_by_id,
        processed_by_name=record.processed_by_name,
        notes=record.notes,
    )


# =====================================================
# COMMIT
# =====================================================
def _claim_use_stmt(discount_id: int):
    """
    Compare-and-increment: one statement that advances current_uses only
    while it is still below max_total_uses. Zero rows back means the limit
    was reached (or the definition is gone).
    """
    return (
        update(DiscountCode)
        .where(
            DiscountCode.id == discount_id,
            or_(
                DiscountCode.max_total_uses.is_(None),
                DiscountCode.current_uses < DiscountCode.max_total_uses,
            ),
        )
        .values(current_uses=DiscountCode.current_uses + 1)
        .returning(DiscountCode.id, DiscountCode.code, DiscountCode.current_uses)
        .execution_options(synchronize_session=False)
    )


async def commit_redemption(
    db: AsyncSession,
    discount_id: int,
    draft: RedemptionDraft,
    user,
    now: datetime,
) -> RedemptionOut:
    """
    Record one redemption and advance the usage counter as a single
    transaction. Callers evaluate eligibility first; the only thing
    re-checked here is the global limit, inside the increment itself.

    Raises AppException 409 DISCOUNT_CONCURRENT_LIMIT_EXCEEDED when the
    limit was reached between preview and commit. Do not retry that
    automatically; re-evaluate instead.
    """
    try:
        claimed = (await db.execute(_claim_use_stmt(discount_id))).one_or_none()

        if claimed is None:
            await db.rollback()
            found = await db.scalar(select(DiscountCode.id).where(DiscountCode.id == discount_id))
            if not found:
                raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)

            logger.info(
                "Redemption refused at commit: usage limit reached",
                extra={"discount_id": discount_id},
            )
            raise AppException(
                409,
                CONCURRENT_LIMIT_MESSAGE,
                ErrorCode.DISCOUNT_CONCURRENT_LIMIT_EXCEEDED,
            )

        record = DiscountRedemption(
            discount_id=claimed.id,
            code=claimed.code,
            user_id=draft.user_id,
            user_name=draft.user_name,
            user_email=draft.user_email,
            item_type=draft.item_type,
            item_id=draft.item_id,
            item_name=draft.item_name,
            original_amount=draft.original_amount,
            discount_amount=draft.discount_amount,
            final_amount=draft.final_amount,
            used_at=as_utc(now),
            processed_by_id=user.id,
            processed_by_name=user.display_name,
            notes=draft.notes,
        )
        db.add(record)
        await db.flush()

        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.REDEEM_DISCOUNT,
            target_code=claimed.code,
            item_type=ItemType(draft.item_type).value,
            item_name=draft.item_name,
            original_amount=draft.original_amount,
            discount_amount=draft.discount_amount,
            final_amount=draft.final_amount,
            **actor_context(user),
        )

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise

    logger.info(
        "Discount redeemed",
        extra={
            "discount_id": claimed.id,
            "code": claimed.code,
            "redemption_id": record.id,
            "current_uses": claimed.current_uses,
        },
    )
    return _map_redemption(record)


# =====================================================
# QUERIES
# =====================================================
async def count_user_redemptions(
    db: AsyncSession,
    user_id: str,
    discount_id: int,
) -> int:
    total = await db.scalar(
        select(func.count(DiscountRedemption.id)).where(
            DiscountRedemption.user_id == user_id,
            DiscountRedemption.discount_id == discount_id,
        )
    )
    return total or 0


async def list_redemptions(
    db: AsyncSession,
    discount_id: int,
    *,
    user_id: str | None = None,
    item_type: ItemType | None = None,
    page: int = 1,
    page_size: int = 20,
    order: str = "desc",
) -> RedemptionListData:
    logger.info(
        "List redemptions",
        extra={
            "discount_id": discount_id,
            "user_id": user_id,
            "item_type": item_type,
            "page": page,
            "page_size": page_size,
        },
    )

    found = await db.scalar(select(DiscountCode.id).where(DiscountCode.id == discount_id))
    if not found:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)

    # -------------------------------
    # BASE QUERY
    # -------------------------------
    base_query = select(DiscountRedemption).where(
        DiscountRedemption.discount_id == discount_id,
    )

    if user_id:
        base_query = base_query.where(DiscountRedemption.user_id == user_id)

    if item_type:
        base_query = base_query.where(DiscountRedemption.item_type == item_type)

    # -------------------------------
    # COUNT (NO SORT)
    # -------------------------------
    total = await db.scalar(
        select(func.count()).select_from(base_query.subquery())
    )

    # -------------------------------
    # SORT + PAGINATION
    # -------------------------------
    order_fn = asc if order == "asc" else desc
    stmt = (
        base_query
        .order_by(order_fn(DiscountRedemption.used_at), order_fn(DiscountRedemption.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    result = await db.execute(stmt)

    return RedemptionListData(
        total=total or 0,
        items=[_map_redemption(r) for r in result.scalars().all()],
    )


async def load_all_redemptions(db: AsyncSession) -> list[DiscountRedemption]:
    result = await db.execute(select(DiscountRedemption))
    return list(result.scalars().all())
