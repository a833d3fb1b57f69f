# studio_discounts/services/discounts/stats_aggregator.py

from collections import Counter
from datetime import datetime, timezone

from studio_discounts.core.clock import as_utc
from studio_discounts.models.enums.discount_status import DiscountStatus
from studio_discounts.schemas.discounts.stats_schemas import DiscountStats, MostUsedDiscount
from studio_discounts.services.discounts.status_resolver import resolve_status
from studio_discounts.utils.decimal_utils import to_decimal, ZERO

STATUS_FIELDS = {
    DiscountStatus.active: "active_discounts",
    DiscountStatus.not_yet_started: "not_yet_started_discounts",
    DiscountStatus.expired: "expired_discounts",
    DiscountStatus.used_up: "used_up_discounts",
    DiscountStatus.disabled: "disabled_discounts",
}

_NEVER = datetime.max.replace(tzinfo=timezone.utc)


def summarize(definitions, records, now: datetime) -> DiscountStats:
    """Read-only roll-up. Recompute on demand; statuses move with the clock."""
    stats = DiscountStats(total_discounts=len(definitions))

    for definition in definitions:
        field = STATUS_FIELDS[resolve_status(definition, now)]
        setattr(stats, field, getattr(stats, field) + 1)

    uses = Counter()
    snapshot_codes = {}
    total_amount = ZERO
    for record in records:
        uses[record.discount_id] += 1
        snapshot_codes.setdefault(record.discount_id, record.code)
        total_amount += to_decimal(record.discount_amount)

    stats.total_redemptions = sum(uses.values())
    stats.total_discount_amount = to_decimal(total_amount)

    if uses:
        by_id = {d.id: d for d in definitions}

        def rank(discount_id):
            # most uses first, ties go to the earliest created definition
            definition = by_id.get(discount_id)
            created = as_utc(definition.created_at) if definition is not None else None
            return (-uses[discount_id], created or _NEVER, discount_id)

        top_id = min(uses, key=rank)
        top = by_id.get(top_id)
        stats.most_used = MostUsedDiscount(
            discount_id=top_id,
            code=top.code if top is not None else snapshot_codes[top_id],
            name=top.name if top is not None else snapshot_codes[top_id],
            uses=uses[top_id],
        )

    return stats
