# studio_discounts/services/discounts/discount_service.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, update, delete, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.models.discounts.discount_models import DiscountCode
from studio_discounts.models.discounts.redemption_models import DiscountRedemption
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_scope import DiscountScope
from studio_discounts.models.enums.discount_status import DiscountStatus
from studio_discounts.schemas.discounts.discount_schemas import (
    DiscountCreate,
    DiscountUpdate,
    DiscountOut,
    DiscountListData,
    DiscountDeleteOut,
)
from studio_discounts.services.discounts.status_resolver import resolve_status
from studio_discounts.core.clock import as_utc
from studio_discounts.core.exceptions import AppException
from studio_discounts.constants.error_codes import ErrorCode
from studio_discounts.constants.activity_codes import ActivityCode
from studio_discounts.utils.activity_helpers import emit_activity, actor_context
from studio_discounts.utils.discount_utils import (
    normalize_code,
    is_valid_code_format,
    format_discount_display,
)
from studio_discounts.utils.decimal_utils import to_decimal
from studio_discounts.utils.logger import get_logger

logger = get_logger(__name__)


# ---------------- VALIDATION ----------------
def _validate_code(code: str) -> str:
    if not is_valid_code_format(code):
        raise AppException(
            400,
            "Discount code must be at least 3 characters and use only letters, digits, hyphens or underscores",
            ErrorCode.DISCOUNT_INVALID_CODE,
        )
    return normalize_code(code)


def _validate_name(name: str) -> str:
    if not name or not name.strip():
        raise AppException(400, "Discount name is required", ErrorCode.VALIDATION_ERROR)
    return name.strip()


def _validate_discount(kind: DiscountKind, value: Decimal):
    if kind == DiscountKind.percentage:
        if value <= 0 or value > 100:
            raise AppException(400, "Percentage must be greater than 0 and at most 100", ErrorCode.DISCOUNT_INVALID_VALUE)
    elif kind == DiscountKind.fixed_amount:
        if value <= 0:
            raise AppException(400, "Fixed amount must be greater than 0", ErrorCode.DISCOUNT_INVALID_VALUE)


def _validate_limits(max_total_uses, max_uses_per_user, current_uses: int = 0):
    if max_total_uses is not None and max_total_uses < 1:
        raise AppException(400, "Maximum uses must be at least 1", ErrorCode.DISCOUNT_INVALID_LIMIT)
    if max_uses_per_user is not None and max_uses_per_user < 1:
        raise AppException(400, "Maximum uses per user must be at least 1", ErrorCode.DISCOUNT_INVALID_LIMIT)
    if max_total_uses is not None and max_total_uses < current_uses:
        raise AppException(
            400,
            f"Maximum uses cannot be lower than the {current_uses} redemptions already recorded",
            ErrorCode.DISCOUNT_INVALID_LIMIT,
        )


def _validate_range(valid_from: datetime, valid_until: datetime | None):
    if valid_until is not None and valid_until <= valid_from:
        raise AppException(400, "End date must be after start date", ErrorCode.DISCOUNT_INVALID_RANGE)


def _validate_scope(scope: DiscountScope, item_ids) -> list[str]:
    if scope != DiscountScope.specific_items:
        return []

    cleaned = []
    for item_id in item_ids or []:
        item_id = str(item_id).strip()
        if item_id and item_id not in cleaned:
            cleaned.append(item_id)

    if not cleaned:
        raise AppException(
            400,
            "Select at least one item for an item-specific discount",
            ErrorCode.DISCOUNT_INVALID_SCOPE,
        )
    return cleaned


def _validate_minimum(minimum):
    if minimum is None:
        return None
    minimum = to_decimal(minimum)
    if minimum < 0:
        raise AppException(400, "Minimum purchase amount cannot be negative", ErrorCode.DISCOUNT_INVALID_VALUE)
    return minimum


def _duplicate_code() -> AppException:
    return AppException(
        409,
        "Discount code already exists. Please choose a different code.",
        ErrorCode.DISCOUNT_CODE_EXISTS,
    )


async def _code_taken(db: AsyncSession, code: str, exclude_id: int | None = None) -> bool:
    query = select(DiscountCode.id).where(DiscountCode.code == code)

    if exclude_id:
        query = query.where(DiscountCode.id != exclude_id)

    return bool(await db.scalar(query))


async def _assert_code_available(
    *,
    db: AsyncSession,
    code: str,
    exclude_id: int | None = None,
):
    if await _code_taken(db, code, exclude_id):
        raise _duplicate_code()


# ---------------- LOADING / MAPPING ----------------
async def _load(db: AsyncSession, discount_id: int) -> DiscountCode | None:
    # populate_existing: pick up server-side timestamps and counter bumps
    return await db.get(DiscountCode, discount_id, populate_existing=True)


async def _get_or_404(db: AsyncSession, discount_id: int) -> DiscountCode:
    discount = await _load(db, discount_id)
    if not discount:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return discount


def _map_discount(discount: DiscountCode, now: datetime) -> DiscountOut:
    return DiscountOut(
        id=discount.id,
        code=discount.code,
        name=discount.name,
        description=discount.description,

        kind=discount.kind,
        value=to_decimal(discount.value),
        display=format_discount_display(discount.kind, discount.value),

        max_total_uses=discount.max_total_uses,
        max_uses_per_user=discount.max_uses_per_user,
        current_uses=discount.current_uses,

        valid_from=as_utc(discount.valid_from),
        valid_until=as_utc(discount.valid_until),

        scope=discount.scope,
        specific_item_ids=discount.specific_item_ids or [],
        minimum_purchase_amount=(
            to_decimal(discount.minimum_purchase_amount)
            if discount.minimum_purchase_amount is not None
            else None
        ),

        enabled=discount.enabled,
        status=resolve_status(discount, now),
        version=discount.version,

        created_at=as_utc(discount.created_at),
        updated_at=as_utc(discount.updated_at),

        created_by=discount.created_by_id,
        updated_by=discount.updated_by_id,
        created_by_name=discount.created_by_username,
        updated_by_name=discount.updated_by_username,
    )


# ---------------- CREATE ----------------
async def create_discount(db: AsyncSession, payload: DiscountCreate, user, now: datetime) -> DiscountOut:
    code = _validate_code(payload.code)
    name = _validate_name(payload.name)
    # stored at two places, so validate the stored amount
    value = to_decimal(payload.value)
    _validate_discount(payload.kind, value)
    _validate_limits(payload.max_total_uses, payload.max_uses_per_user)

    valid_from = as_utc(payload.valid_from)
    valid_until = as_utc(payload.valid_until)
    _validate_range(valid_from, valid_until)

    item_ids = _validate_scope(payload.scope, payload.specific_item_ids)
    minimum = _validate_minimum(payload.minimum_purchase_amount)

    await _assert_code_available(db=db, code=code)

    try:
        discount = DiscountCode(
            code=code,
            name=name,
            description=payload.description.strip() if payload.description else None,
            kind=payload.kind,
            value=value,
            max_total_uses=payload.max_total_uses,
            max_uses_per_user=payload.max_uses_per_user,
            current_uses=0,
            valid_from=valid_from,
            valid_until=valid_until,
            scope=payload.scope,
            specific_item_ids=item_ids,
            minimum_purchase_amount=minimum,
            enabled=payload.enabled,
            version=1,
            created_by_id=user.id,
            updated_by_id=user.id,
        )
        db.add(discount)
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # only the unique code index means "duplicate"; anything else propagates
        if await _code_taken(db, code):
            raise _duplicate_code()
        raise

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.CREATE_DISCOUNT,
        target_name=discount.name,
        target_code=discount.code,
        **actor_context(user),
    )

    await db.commit()
    logger.info("Discount created", extra={"discount_id": discount.id, "code": code})
    return _map_discount(await _load(db, discount.id), now)


# ---------------- GET ----------------
async def get_discount(db: AsyncSession, discount_id: int, now: datetime) -> DiscountOut:
    return _map_discount(await _get_or_404(db, discount_id), now)


async def find_by_code(db: AsyncSession, code: str) -> DiscountCode | None:
    """Catalog lookup by normalized (case-insensitive) code."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    result = await db.execute(
        select(DiscountCode).where(DiscountCode.code == normalized)
    )
    return result.scalars().first()


async def get_discount_by_code(db: AsyncSession, code: str, now: datetime) -> DiscountOut:
    discount = await find_by_code(db, code)
    if not discount:
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)
    return _map_discount(discount, now)


# ---------------- LIST ----------------
async def list_discounts(
    *,
    db: AsyncSession,
    now: datetime,
    code: str | None = None,
    name: str | None = None,
    kind: DiscountKind | None = None,
    enabled: bool | None = None,
    status: DiscountStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> DiscountListData:
    query = select(DiscountCode)

    if code:
        query = query.where(DiscountCode.code.ilike(f"%{code.strip()}%"))
    if name:
        query = query.where(DiscountCode.name.ilike(f"%{name}%"))
    if kind:
        query = query.where(DiscountCode.kind == kind)
    if enabled is not None:
        query = query.where(DiscountCode.enabled == enabled)

    query = query.order_by(DiscountCode.created_at.desc(), DiscountCode.id.desc())
    offset = (page - 1) * page_size

    # status depends on the clock, so it can only be filtered after loading
    if status is not None:
        result = await db.execute(query)
        matching = [
            d for d in result.scalars().all()
            if resolve_status(d, now) == status
        ]
        return DiscountListData(
            total=len(matching),
            items=[_map_discount(d, now) for d in matching[offset:offset + page_size]],
        )

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    result = await db.execute(query.offset(offset).limit(page_size))

    return DiscountListData(
        total=total or 0,
        items=[_map_discount(d, now) for d in result.scalars().all()],
    )


# ---------------- UPDATE ----------------
async def update_discount(
    db: AsyncSession,
    discount_id: int,
    payload: DiscountUpdate,
    user,
    now: datetime,
) -> DiscountOut:
    current = await _get_or_404(db, discount_id)

    data = payload.model_dump(exclude_unset=True, exclude={"version"})
    if not data:
        raise AppException(400, "No changes detected", ErrorCode.VALIDATION_ERROR)

    code_changed = False
    if "code" in data:
        data["code"] = _validate_code(data["code"] or "")
        if data["code"] != current.code:
            code_changed = True
            await _assert_code_available(db=db, code=data["code"], exclude_id=current.id)

    if "name" in data:
        data["name"] = _validate_name(data["name"])

    if "kind" in data or "value" in data:
        kind = data.get("kind") or current.kind
        value = to_decimal(data.get("value") if data.get("value") is not None else current.value)
        _validate_discount(kind, value)
        data["kind"] = kind
        data["value"] = value

    _validate_limits(
        data.get("max_total_uses", current.max_total_uses),
        data.get("max_uses_per_user", current.max_uses_per_user),
        current.current_uses,
    )

    if "valid_from" in data or "valid_until" in data:
        valid_from = as_utc(data.get("valid_from") or current.valid_from)
        valid_until = as_utc(data.get("valid_until", current.valid_until))
        _validate_range(valid_from, valid_until)
        data["valid_from"] = valid_from
        data["valid_until"] = valid_until

    if "scope" in data or "specific_item_ids" in data:
        scope = data.get("scope") or current.scope
        data["scope"] = scope
        data["specific_item_ids"] = _validate_scope(
            scope,
            data["specific_item_ids"] if data.get("specific_item_ids") is not None else current.specific_item_ids,
        )

    if "minimum_purchase_amount" in data:
        data["minimum_purchase_amount"] = _validate_minimum(data["minimum_purchase_amount"])

    if "enabled" in data and data["enabled"] is None:
        data.pop("enabled")

    if "description" in data and data["description"]:
        data["description"] = data["description"].strip()

    stmt = (
        update(DiscountCode)
        .where(
            DiscountCode.id == discount_id,
            DiscountCode.version == payload.version,
        )
        .values(
            **data,
            version=DiscountCode.version + 1,
            updated_by_id=user.id,
        )
        .execution_options(synchronize_session=False)
    )

    try:
        result = await db.execute(stmt)
    except IntegrityError:
        await db.rollback()
        if code_changed and await _code_taken(db, data["code"], exclude_id=discount_id):
            raise _duplicate_code()
        raise

    if result.rowcount == 0:
        await db.rollback()
        raise AppException(
            409,
            "Discount was modified by another user. Reload and try again.",
            ErrorCode.DISCOUNT_VERSION_CONFLICT,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.UPDATE_DISCOUNT,
        target_code=data.get("code", current.code),
        changes=", ".join(sorted(data.keys())),
        **actor_context(user),
    )

    await db.commit()
    logger.info("Discount updated", extra={"discount_id": discount_id, "fields": sorted(data.keys())})
    return _map_discount(await _load(db, discount_id), now)


# ---------------- ENABLE / DISABLE ----------------
async def _set_enabled(
    db: AsyncSession,
    discount_id: int,
    enabled: bool,
    user,
    activity: ActivityCode,
    now: datetime,
) -> DiscountOut:
    current = await _get_or_404(db, discount_id)

    if current.enabled == enabled:
        raise AppException(
            400,
            f"Discount is already {'enabled' if enabled else 'disabled'}",
            ErrorCode.VALIDATION_ERROR,
        )

    stmt = (
        update(DiscountCode)
        .where(
            DiscountCode.id == discount_id,
            DiscountCode.enabled.is_(not enabled),
        )
        .values(
            enabled=enabled,
            version=DiscountCode.version + 1,
            updated_by_id=user.id,
        )
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(stmt)
    if result.rowcount == 0:
        await db.rollback()
        raise AppException(
            409,
            "Discount was modified by another user. Reload and try again.",
            ErrorCode.DISCOUNT_VERSION_CONFLICT,
        )

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=activity,
        target_code=current.code,
        **actor_context(user),
    )

    await db.commit()
    return _map_discount(await _load(db, discount_id), now)


async def deactivate_discount(db: AsyncSession, discount_id: int, user, now: datetime) -> DiscountOut:
    return await _set_enabled(db, discount_id, False, user, ActivityCode.DEACTIVATE_DISCOUNT, now)


async def reactivate_discount(db: AsyncSession, discount_id: int, user, now: datetime) -> DiscountOut:
    return await _set_enabled(db, discount_id, True, user, ActivityCode.REACTIVATE_DISCOUNT, now)


# ---------------- DELETE ----------------
async def delete_discount(db: AsyncSession, discount_id: int, user, now: datetime) -> DiscountDeleteOut:
    """
    Physically remove a never-used definition. A definition with redemptions
    on record is disabled instead and stays queryable with its history.
    """
    current = await _get_or_404(db, discount_id)
    code = current.code

    # Conditional delete: a redemption committed after the load above bumps
    # current_uses in the same transaction as its record, so it blocks this.
    stmt = (
        delete(DiscountCode)
        .where(
            DiscountCode.id == discount_id,
            DiscountCode.current_uses == 0,
            ~exists().where(DiscountRedemption.discount_id == discount_id),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)

    if result.rowcount == 1:
        await emit_activity(
            db=db,
            user_id=user.id,
            username=user.username,
            code=ActivityCode.DELETE_DISCOUNT,
            target_code=code,
            **actor_context(user),
        )
        await db.commit()
        db.expunge(current)
        logger.info("Discount deleted", extra={"discount_id": discount_id, "code": code})
        return DiscountDeleteOut(deleted=True, disabled=False)

    disabled = await db.execute(
        update(DiscountCode)
        .where(DiscountCode.id == discount_id)
        .values(
            enabled=False,
            version=DiscountCode.version + 1,
            updated_by_id=user.id,
        )
        .execution_options(synchronize_session=False)
    )
    if disabled.rowcount == 0:
        # removed by a concurrent delete after the load above
        await db.rollback()
        raise AppException(404, "Discount not found", ErrorCode.DISCOUNT_NOT_FOUND)

    uses = await db.scalar(
        select(func.count(DiscountRedemption.id)).where(DiscountRedemption.discount_id == discount_id)
    )

    await emit_activity(
        db=db,
        user_id=user.id,
        username=user.username,
        code=ActivityCode.DISABLE_USED_DISCOUNT,
        target_code=code,
        uses=uses or 0,
        **actor_context(user),
    )

    await db.commit()
    logger.info(
        "Discount disabled instead of deleted (has usage history)",
        extra={"discount_id": discount_id, "code": code},
    )
    return DiscountDeleteOut(
        deleted=False,
        disabled=True,
        discount=_map_discount(await _load(db, discount_id), now),
    )
