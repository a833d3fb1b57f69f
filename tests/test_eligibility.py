from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_scope import DiscountScope
from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.models.enums.rejection_reason import RejectionReason
from studio_discounts.schemas.discounts.redemption_schemas import EligibilityRequest
from studio_discounts.services.discounts.eligibility import evaluate, compute_discount


def make_request(amount="100.00", item_type=ItemType.CLASS, item_id="yoga-101", user_id=None, code="SAVE10"):
    return EligibilityRequest(
        code=code,
        item_type=item_type,
        item_id=item_id,
        purchase_amount=Decimal(amount),
        user_id=user_id,
    )


def test_unknown_code_is_rejected():
    result = evaluate(None, make_request(), NOW)
    assert not result.accepted
    assert result.reason == RejectionReason.CODE_NOT_FOUND
    assert result.message == "Invalid discount code"
    assert result.discount_amount == Decimal("0.00")
    assert result.final_amount == Decimal("100.00")


def test_percentage_rounds_half_up_to_cents(make_definition):
    definition = make_definition(value=Decimal("20"))
    result = evaluate(definition, make_request("49.99"), NOW)

    assert result.accepted
    assert result.discount_amount == Decimal("10.00")
    assert result.final_amount == Decimal("39.99")
    assert result.display == "20% OFF"
    assert result.savings_percentage == 20


def test_fixed_amount_is_capped_at_purchase(make_definition):
    definition = make_definition(kind=DiscountKind.fixed_amount, value=Decimal("25.00"))
    result = evaluate(definition, make_request("18.00"), NOW)

    assert result.accepted
    assert result.discount_amount == Decimal("18.00")
    assert result.final_amount == Decimal("0.00")
    assert result.display == "$25.00 OFF"
    assert result.savings_percentage == 100


@pytest.mark.parametrize("amount", ["0", "0.01", "19.99", "333.33"])
def test_accepted_amounts_always_add_up(make_definition, amount):
    definition = make_definition(value=Decimal("33.5"))
    result = evaluate(definition, make_request(amount), NOW)

    assert result.accepted
    assert Decimal("0") <= result.discount_amount <= result.original_amount
    assert result.original_amount - result.discount_amount == result.final_amount


def test_class_scope_accepts_workshops_but_not_packages(make_definition):
    definition = make_definition(code="CLASS5", scope=DiscountScope.classes)

    assert evaluate(definition, make_request(item_type=ItemType.CLASS), NOW).accepted
    assert evaluate(definition, make_request(item_type=ItemType.WORKSHOP), NOW).accepted

    result = evaluate(definition, make_request(item_type=ItemType.PACKAGE), NOW)
    assert result.reason == RejectionReason.OUT_OF_SCOPE
    assert result.message == "This discount code only applies to classes"


def test_workshop_scope_rejects_classes(make_definition):
    definition = make_definition(scope=DiscountScope.workshops)
    result = evaluate(definition, make_request(item_type=ItemType.CLASS), NOW)
    assert result.reason == RejectionReason.OUT_OF_SCOPE


def test_specific_items_scope(make_definition):
    definition = make_definition(
        scope=DiscountScope.specific_items,
        specific_item_ids=["pkg-10", "yoga-101"],
    )
    assert evaluate(definition, make_request(item_id="yoga-101"), NOW).accepted

    result = evaluate(definition, make_request(item_id="spin-7"), NOW)
    assert result.reason == RejectionReason.OUT_OF_SCOPE
    assert result.message == "This discount code does not apply to the selected item"


def test_minimum_purchase_boundary(make_definition):
    definition = make_definition(minimum_purchase_amount=Decimal("50.00"))

    below = evaluate(definition, make_request("49.99"), NOW)
    assert below.reason == RejectionReason.BELOW_MINIMUM
    assert below.message == "Minimum purchase amount of $50.00 required for this discount"

    assert evaluate(definition, make_request("50.00"), NOW).accepted


def test_disabled_and_window_checks(make_definition):
    assert evaluate(make_definition(enabled=False), make_request(), NOW).reason == RejectionReason.CODE_DISABLED

    future = make_definition(valid_from=NOW + timedelta(days=1))
    assert evaluate(future, make_request(), NOW).reason == RejectionReason.NOT_YET_ACTIVE

    past = make_definition(valid_from=NOW - timedelta(days=5), valid_until=NOW - timedelta(days=1))
    assert evaluate(past, make_request(), NOW).reason == RejectionReason.EXPIRED


def test_global_limit(make_definition):
    definition = make_definition(max_total_uses=1, current_uses=1)
    result = evaluate(definition, make_request(), NOW)
    assert result.reason == RejectionReason.GLOBAL_LIMIT_REACHED
    assert result.discount_id == definition.id


def test_per_user_limit_only_binds_identified_users(make_definition):
    definition = make_definition(max_uses_per_user=1)

    result = evaluate(definition, make_request(user_id="member-7"), NOW, prior_user_uses=1)
    assert result.reason == RejectionReason.PER_USER_LIMIT_REACHED

    assert evaluate(definition, make_request(user_id=None), NOW, prior_user_uses=1).accepted
    assert evaluate(definition, make_request(user_id="member-8"), NOW, prior_user_uses=0).accepted


def test_first_failing_check_is_reported(make_definition):
    definition = make_definition(
        enabled=False,
        valid_until=NOW - timedelta(hours=1),
        max_total_uses=1,
        current_uses=1,
        minimum_purchase_amount=Decimal("500"),
        scope=DiscountScope.packages,
    )
    assert evaluate(definition, make_request(), NOW).reason == RejectionReason.CODE_DISABLED

    definition.enabled = True
    assert evaluate(definition, make_request(), NOW).reason == RejectionReason.EXPIRED

    definition.valid_until = None
    assert evaluate(definition, make_request(), NOW).reason == RejectionReason.GLOBAL_LIMIT_REACHED

    definition.max_total_uses = None
    assert evaluate(definition, make_request(), NOW).reason == RejectionReason.BELOW_MINIMUM

    definition.minimum_purchase_amount = None
    assert evaluate(definition, make_request(), NOW).reason == RejectionReason.OUT_OF_SCOPE


def test_evaluate_does_not_touch_the_definition(make_definition):
    definition = make_definition(max_total_uses=5, current_uses=2)
    for _ in range(3):
        evaluate(definition, make_request(), NOW)
    assert definition.current_uses == 2


def test_compute_discount_full_percentage():
    discount, final = compute_discount(DiscountKind.percentage, Decimal("100"), Decimal("42.50"))
    assert discount == Decimal("42.50")
    assert final == Decimal("0.00")
