# studio_discounts/services/discounts/status_resolver.py

from datetime import datetime

from studio_discounts.core.clock import as_utc
from studio_discounts.models.enums.discount_status import DiscountStatus


def resolve_status(definition, now: datetime) -> DiscountStatus:
    """
    Derive the lifecycle status of a discount definition at ``now``.

    First match wins:
    disabled > not yet started > expired > used up > active.

    An operator-disabled code never reads as expired or used up, and a code
    that has not started never reads as used up, even with pre-seeded usage.
    """
    now = as_utc(now)

    if not definition.enabled:
        return DiscountStatus.disabled

    if now < as_utc(definition.valid_from):
        return DiscountStatus.not_yet_started

    valid_until = as_utc(definition.valid_until)
    if valid_until is not None and now > valid_until:
        return DiscountStatus.expired

    if (
        definition.max_total_uses is not None
        and (definition.current_uses or 0) >= definition.max_total_uses
    ):
        return DiscountStatus.used_up

    return DiscountStatus.active
