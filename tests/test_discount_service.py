from decimal import Decimal

import pytest

from conftest import NOW
from studio_discounts.constants.error_codes import ErrorCode
from studio_discounts.core.exceptions import AppException
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.schemas.discounts.discount_schemas import DiscountCreate
from studio_discounts.services.discounts import discount_service
from studio_discounts.services.discounts.discount_service import create_discount, delete_discount


async def test_delete_of_row_removed_mid_request_is_not_found(db, admin_user, make_definition, monkeypatch):
    # the definition was loaded, then deleted by another request before this one acted
    vanished = make_definition(id=4242, code="GONE")

    async def load_vanished(session, discount_id):
        return vanished

    monkeypatch.setattr(discount_service, "_get_or_404", load_vanished)

    with pytest.raises(AppException) as exc_info:
        await delete_discount(db, 4242, admin_user, NOW)

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == ErrorCode.DISCOUNT_NOT_FOUND


async def test_duplicate_code_still_reported_as_conflict(db, admin_user):
    payload = DiscountCreate(
        code="SAVE10",
        name="Ten percent off",
        kind=DiscountKind.percentage,
        value=Decimal("10"),
        valid_from=NOW,
    )
    await create_discount(db, payload, admin_user, NOW)

    with pytest.raises(AppException) as exc_info:
        await create_discount(db, payload.model_copy(update={"code": "save10"}), admin_user, NOW)

    assert exc_info.value.status_code == 409
    assert exc_info.value.error_code == ErrorCode.DISCOUNT_CODE_EXISTS
