# studio_discounts/services/discounts/eligibility.py
"""
Decide whether one prospective redemption is allowed.

Side-effect free: safe to call on every keystroke of a "preview my discount"
form. Rejections are returned as data, never raised.
"""

from datetime import datetime
from decimal import Decimal

from studio_discounts.core.clock import as_utc
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_scope import DiscountScope
from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.models.enums.rejection_reason import RejectionReason
from studio_discounts.schemas.discounts.redemption_schemas import (
    EligibilityRequest,
    EligibilityResult,
)
from studio_discounts.utils.decimal_utils import to_decimal, percentage_of, ZERO
from studio_discounts.utils.discount_utils import (
    format_discount_display,
    calculate_savings_percentage,
)

REJECTION_MESSAGES = {
    RejectionReason.CODE_NOT_FOUND: "Invalid discount code",
    RejectionReason.CODE_DISABLED: "This discount code is no longer active",
    RejectionReason.NOT_YET_ACTIVE: "This discount code is not yet active",
    RejectionReason.EXPIRED: "This discount code has expired",
    RejectionReason.GLOBAL_LIMIT_REACHED: "This discount code has reached its usage limit",
    RejectionReason.PER_USER_LIMIT_REACHED: (
        "You have reached the maximum number of uses for this discount code"
    ),
    RejectionReason.BELOW_MINIMUM: "Minimum purchase amount of ${minimum} required for this discount",
    RejectionReason.OUT_OF_SCOPE: "This discount code only applies to {scope}",
}

SPECIFIC_ITEM_MESSAGE = "This discount code does not apply to the selected item"

SCOPE_FOR_ITEM_TYPE = {
    ItemType.CLASS: DiscountScope.classes,
    ItemType.WORKSHOP: DiscountScope.workshops,
    ItemType.PACKAGE: DiscountScope.packages,
}


def scope_allows(definition, item_type: ItemType, item_id: str) -> bool:
    scope = definition.scope

    if scope == DiscountScope.all:
        return True

    if scope == DiscountScope.specific_items:
        return item_id in (definition.specific_item_ids or [])

    # Workshops count as classes for scoping; class-scoped codes accept them.
    if scope == DiscountScope.classes and item_type == ItemType.WORKSHOP:
        return True

    return SCOPE_FOR_ITEM_TYPE[item_type] == scope


def compute_discount(kind: DiscountKind, value, purchase_amount) -> tuple[Decimal, Decimal]:
    """Return (discount_amount, final_amount) for an accepted purchase."""
    purchase_amount = to_decimal(purchase_amount)

    if kind == DiscountKind.percentage:
        discount_amount = percentage_of(purchase_amount, Decimal(value))
    else:
        discount_amount = min(to_decimal(value), purchase_amount)

    final_amount = max(ZERO, purchase_amount - discount_amount)
    return discount_amount, final_amount


def _reject(reason: RejectionReason, purchase_amount: Decimal, definition=None, message=None):
    return EligibilityResult(
        accepted=False,
        reason=reason,
        message=message or REJECTION_MESSAGES[reason],
        discount_id=definition.id if definition is not None else None,
        code=definition.code if definition is not None else None,
        original_amount=purchase_amount,
        discount_amount=ZERO,
        final_amount=purchase_amount,
    )


def evaluate(
    definition,
    request: EligibilityRequest,
    now: datetime,
    prior_user_uses: int = 0,
) -> EligibilityResult:
    """
    Run the redemption checks in order; the first failure is the reason
    surfaced to the caller.

    ``definition`` is the catalog entry found for the submitted code, or None.
    ``prior_user_uses`` is how many times ``request.user_id`` has already
    redeemed this definition; ignored for anonymous requests.
    """
    now = as_utc(now)
    amount = to_decimal(request.purchase_amount)

    if definition is None:
        return _reject(RejectionReason.CODE_NOT_FOUND, amount)

    if not definition.enabled:
        return _reject(RejectionReason.CODE_DISABLED, amount, definition)

    if now < as_utc(definition.valid_from):
        return _reject(RejectionReason.NOT_YET_ACTIVE, amount, definition)

    valid_until = as_utc(definition.valid_until)
    if valid_until is not None and now > valid_until:
        return _reject(RejectionReason.EXPIRED, amount, definition)

    if (
        definition.max_total_uses is not None
        and (definition.current_uses or 0) >= definition.max_total_uses
    ):
        return _reject(RejectionReason.GLOBAL_LIMIT_REACHED, amount, definition)

    # Per-user limits only bind identified users.
    if (
        request.user_id
        and definition.max_uses_per_user is not None
        and prior_user_uses >= definition.max_uses_per_user
    ):
        return _reject(RejectionReason.PER_USER_LIMIT_REACHED, amount, definition)

    minimum = definition.minimum_purchase_amount
    if minimum is not None and amount < to_decimal(minimum):
        return _reject(
            RejectionReason.BELOW_MINIMUM,
            amount,
            definition,
            REJECTION_MESSAGES[RejectionReason.BELOW_MINIMUM].format(minimum=to_decimal(minimum)),
        )

    if not scope_allows(definition, request.item_type, request.item_id):
        if definition.scope == DiscountScope.specific_items:
            message = SPECIFIC_ITEM_MESSAGE
        else:
            message = REJECTION_MESSAGES[RejectionReason.OUT_OF_SCOPE].format(
                scope=DiscountScope(definition.scope).value
            )
        return _reject(RejectionReason.OUT_OF_SCOPE, amount, definition, message)

    discount_amount, final_amount = compute_discount(definition.kind, definition.value, amount)

    return EligibilityResult(
        accepted=True,
        discount_id=definition.id,
        code=definition.code,
        display=format_discount_display(definition.kind, definition.value),
        original_amount=amount,
        discount_amount=discount_amount,
        final_amount=final_amount,
        savings_percentage=calculate_savings_percentage(amount, final_amount),
    )
