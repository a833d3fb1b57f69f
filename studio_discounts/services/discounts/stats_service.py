# studio_discounts/services/discounts/stats_service.py

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.models.discounts.discount_models import DiscountCode
from studio_discounts.schemas.discounts.stats_schemas import DiscountStats
from studio_discounts.services.discounts.redemption_service import load_all_redemptions
from studio_discounts.services.discounts.stats_aggregator import summarize
from studio_discounts.utils.logger import get_logger

logger = get_logger(__name__)


async def get_discount_stats(db: AsyncSession, now: datetime) -> DiscountStats:
    result = await db.execute(select(DiscountCode))
    definitions = list(result.scalars().all())
    records = await load_all_redemptions(db)

    stats = summarize(definitions, records, now)
    logger.info(
        "Discount stats computed",
        extra={
            "total_discounts": stats.total_discounts,
            "total_redemptions": stats.total_redemptions,
        },
    )
    return stats
