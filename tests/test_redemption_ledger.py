import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from conftest import NOW
from studio_discounts.constants.error_codes import ErrorCode
from studio_discounts.core.db import AsyncSessionLocal
from studio_discounts.core.exceptions import AppException
from studio_discounts.models.discounts.redemption_models import DiscountRedemption
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.item_type import ItemType
from studio_discounts.models.enums.rejection_reason import RejectionReason
from studio_discounts.models.support.activity_models import UserActivity
from studio_discounts.schemas.discounts.discount_schemas import DiscountCreate
from studio_discounts.schemas.discounts.redemption_schemas import (
    EligibilityRequest,
    RedemptionDraft,
)
from studio_discounts.services.discounts.checkout_service import preview_discount
from studio_discounts.services.discounts.discount_service import create_discount, get_discount
from studio_discounts.services.discounts.redemption_service import (
    commit_redemption,
    count_user_redemptions,
    list_redemptions,
)


async def seed_discount(db, user, **overrides):
    fields = dict(
        code="SAVE10",
        name="Ten percent off",
        kind=DiscountKind.percentage,
        value=Decimal("10"),
        valid_from=NOW - timedelta(days=1),
    )
    fields.update(overrides)
    return await create_discount(db, DiscountCreate(**fields), user, NOW)


def make_draft(user_id="member-1", original="40.00", discount="4.00"):
    return RedemptionDraft(
        user_id=user_id,
        user_name="Sam Member",
        item_type=ItemType.CLASS,
        item_id="yoga-101",
        item_name="Morning Yoga",
        original_amount=Decimal(original),
        discount_amount=Decimal(discount),
        final_amount=Decimal(original) - Decimal(discount),
    )


async def redemption_count(db, discount_id):
    return await db.scalar(
        select(func.count(DiscountRedemption.id)).where(DiscountRedemption.discount_id == discount_id)
    )


async def test_commit_records_and_counts(db, staff_user, admin_user):
    discount = await seed_discount(db, admin_user)

    record = await commit_redemption(db, discount.id, make_draft(), staff_user, NOW)

    assert record.code == "SAVE10"
    assert record.final_amount == Decimal("36.00")
    assert record.processed_by == staff_user.id
    assert record.processed_by_name == "Front Desk"
    assert record.used_at == NOW

    fresh = await get_discount(db, discount.id, NOW)
    assert fresh.current_uses == 1
    assert fresh.version == discount.version
    assert await redemption_count(db, discount.id) == 1

    messages = (await db.execute(select(UserActivity.message))).scalars().all()
    assert any("redeemed SAVE10 on class Morning Yoga" in m for m in messages)


async def test_single_use_code_rejects_second_attempt(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user, max_total_uses=1)
    request = EligibilityRequest(
        code="save10",
        item_type=ItemType.CLASS,
        item_id="yoga-101",
        purchase_amount=Decimal("40.00"),
    )

    first = await preview_discount(db, request, NOW)
    assert first.accepted
    await commit_redemption(db, discount.id, make_draft(), staff_user, NOW)

    second = await preview_discount(db, request, NOW)
    assert not second.accepted
    assert second.reason == RejectionReason.GLOBAL_LIMIT_REACHED


async def test_commit_after_limit_reached_is_a_conflict(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user, max_total_uses=1)
    await commit_redemption(db, discount.id, make_draft(), staff_user, NOW)

    with pytest.raises(AppException) as exc_info:
        await commit_redemption(db, discount.id, make_draft(user_id="member-2"), staff_user, NOW)

    assert exc_info.value.status_code == 409
    assert exc_info.value.error_code == ErrorCode.DISCOUNT_CONCURRENT_LIMIT_EXCEEDED
    assert await redemption_count(db, discount.id) == 1
    assert (await get_discount(db, discount.id, NOW)).current_uses == 1


async def test_commit_against_missing_discount(db, staff_user):
    with pytest.raises(AppException) as exc_info:
        await commit_redemption(db, 999, make_draft(), staff_user, NOW)
    assert exc_info.value.status_code == 404


async def test_concurrent_commits_never_exceed_limit(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user, code="FLASH", max_total_uses=3)
    await db.commit()

    async def attempt(n):
        async with AsyncSessionLocal() as session:
            try:
                await commit_redemption(
                    session, discount.id, make_draft(user_id=f"member-{n}"), staff_user, NOW
                )
            except AppException as exc:
                return exc.error_code
            return "ok"

    outcomes = await asyncio.gather(*(attempt(n) for n in range(10)))

    assert outcomes.count("ok") == 3
    assert set(outcomes) - {"ok"} == {ErrorCode.DISCOUNT_CONCURRENT_LIMIT_EXCEEDED}

    fresh = await get_discount(db, discount.id, NOW)
    assert fresh.current_uses == 3
    assert await redemption_count(db, discount.id) == 3


async def test_concurrent_commits_without_limit_all_land(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user, code="OPEN")
    await db.commit()

    async def attempt(n):
        async with AsyncSessionLocal() as session:
            await commit_redemption(
                session, discount.id, make_draft(user_id=f"member-{n}"), staff_user, NOW
            )

    await asyncio.gather(*(attempt(n) for n in range(8)))

    fresh = await get_discount(db, discount.id, NOW)
    assert fresh.current_uses == 8
    assert await redemption_count(db, discount.id) == 8


async def test_per_user_limit_uses_ledger_history(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user, max_uses_per_user=1)
    await commit_redemption(db, discount.id, make_draft(user_id="member-1"), staff_user, NOW)

    assert await count_user_redemptions(db, "member-1", discount.id) == 1
    assert await count_user_redemptions(db, "member-2", discount.id) == 0

    request = EligibilityRequest(
        code="SAVE10",
        item_type=ItemType.CLASS,
        item_id="yoga-101",
        purchase_amount=Decimal("40.00"),
        user_id="member-1",
    )
    result = await preview_discount(db, request, NOW)
    assert result.reason == RejectionReason.PER_USER_LIMIT_REACHED

    other = await preview_discount(db, request.model_copy(update={"user_id": "member-2"}), NOW)
    assert other.accepted


async def test_history_is_newest_first(db, admin_user, staff_user):
    discount = await seed_discount(db, admin_user)
    for n in range(3):
        await commit_redemption(
            db, discount.id, make_draft(user_id=f"member-{n}"), staff_user, NOW + timedelta(minutes=n)
        )

    history = await list_redemptions(db, discount.id)
    assert history.total == 3
    assert [r.user_id for r in history.items] == ["member-2", "member-1", "member-0"]

    filtered = await list_redemptions(db, discount.id, user_id="member-1")
    assert filtered.total == 1


def test_draft_amounts_must_add_up():
    with pytest.raises(ValueError):
        RedemptionDraft(
            item_type=ItemType.CLASS,
            item_id="yoga-101",
            item_name="Morning Yoga",
            original_amount=Decimal("40.00"),
            discount_amount=Decimal("4.00"),
            final_amount=Decimal("35.00"),
        )

    with pytest.raises(ValueError):
        make_draft(original="10.00", discount="12.00")
