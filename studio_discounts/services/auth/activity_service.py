# studio_discounts/services/auth/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from studio_discounts.models.support.activity_models import UserActivity
from studio_discounts.schemas.auth.activity_schemas import (
    UserActivityOut,
    UserActivityFilters,
    UserActivityListData,
)
from studio_discounts.core.exceptions import AppException
from studio_discounts.constants.error_codes import ErrorCode
from studio_discounts.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": UserActivity.created_at,
    "username": UserActivity.username_snapshot,
}


async def list_user_activities(
    *,
    db: AsyncSession,
    filters: UserActivityFilters,
) -> UserActivityListData:
    sort_column = ALLOWED_SORT_FIELDS.get(filters.sort_by)
    if sort_column is None:
        raise AppException(
            400,
            "Invalid sort field",
            ErrorCode.VALIDATION_ERROR,
        )

    query = select(UserActivity)

    if filters.user_id:
        query = query.where(UserActivity.user_id == filters.user_id)

    if filters.username:
        query = query.where(
            UserActivity.username_snapshot.ilike(f"%{filters.username}%")
        )

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    order_fn = desc if filters.sort_order == "desc" else asc
    result = await db.execute(
        query.order_by(order_fn(sort_column), order_fn(UserActivity.id))
        .limit(filters.page_size)
        .offset((filters.page - 1) * filters.page_size)
    )
    activities = result.scalars().all()

    logger.info(
        "User activities fetched",
        extra={
            "total": total,
            "page": filters.page,
            "page_size": filters.page_size,
        },
    )

    return UserActivityListData(
        total=total or 0,
        items=[UserActivityOut.model_validate(a) for a in activities],
    )
