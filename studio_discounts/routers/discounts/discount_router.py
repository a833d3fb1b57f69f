# studio_discounts/routers/discounts/discount_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studio_discounts.core.clock import Clock, get_clock
from studio_discounts.core.db import get_db
from studio_discounts.models.enums.discount_kind import DiscountKind
from studio_discounts.models.enums.discount_status import DiscountStatus
from studio_discounts.schemas.discounts.discount_schemas import (
    DiscountCreate,
    DiscountUpdate,
    DiscountListData,
    DiscountOut,
    DiscountDeleteOut,
)
from studio_discounts.schemas.discounts.stats_schemas import DiscountStats
from studio_discounts.services.discounts.discount_service import (
    create_discount,
    list_discounts,
    get_discount,
    get_discount_by_code,
    update_discount,
    deactivate_discount,
    reactivate_discount,
    delete_discount,
)
from studio_discounts.services.discounts.stats_service import get_discount_stats
from studio_discounts.utils.check_roles import require_role, ADMIN_ONLY, STAFF_ROLES
from studio_discounts.utils.response import APIResponse, success_response
from studio_discounts.utils.logger import get_logger

router = APIRouter(prefix="/discounts", tags=["Discounts"])
logger = get_logger(__name__)


@router.post("/", response_model=APIResponse[DiscountOut])
async def create_discount_api(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(ADMIN_ONLY)),
):
    logger.info("Create discount", extra={"code": payload.code})
    data = await create_discount(db, payload, user, clock())
    return success_response("Discount created successfully", data)


@router.get("/", response_model=APIResponse[DiscountListData])
async def list_discounts_api(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),

    code: str | None = Query(None),
    name: str | None = Query(None),
    kind: DiscountKind | None = Query(None),
    enabled: bool | None = Query(None),
    status: DiscountStatus | None = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    logger.info("List discounts")
    data = await list_discounts(
        db=db,
        now=clock(),
        code=code,
        name=name,
        kind=kind,
        enabled=enabled,
        status=status,
        page=page,
        page_size=page_size,
    )
    return success_response("Discounts fetched successfully", data)


@router.get("/stats", response_model=APIResponse[DiscountStats])
async def discount_stats_api(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    data = await get_discount_stats(db, clock())
    return success_response("Discount statistics calculated", data)


@router.get("/code/{code}", response_model=APIResponse[DiscountOut])
async def get_discount_by_code_api(
    code: str,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    data = await get_discount_by_code(db, code, clock())
    return success_response("Discount fetched successfully", data)


@router.get("/{discount_id}", response_model=APIResponse[DiscountOut])
async def get_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(STAFF_ROLES)),
):
    data = await get_discount(db, discount_id, clock())
    return success_response("Discount fetched successfully", data)


@router.patch("/{discount_id}", response_model=APIResponse[DiscountOut])
async def update_discount_api(
    discount_id: int,
    payload: DiscountUpdate,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(ADMIN_ONLY)),
):
    logger.info("Update discount", extra={"discount_id": discount_id})
    data = await update_discount(db, discount_id, payload, user, clock())
    return success_response("Discount updated successfully", data)


@router.patch("/{discount_id}/deactivate", response_model=APIResponse[DiscountOut])
async def deactivate_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(ADMIN_ONLY)),
):
    logger.info("Deactivate discount", extra={"discount_id": discount_id})
    data = await deactivate_discount(db, discount_id, user, clock())
    return success_response("Discount disabled successfully", data)


@router.patch("/{discount_id}/activate", response_model=APIResponse[DiscountOut])
async def reactivate_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(ADMIN_ONLY)),
):
    logger.info("Reactivate discount", extra={"discount_id": discount_id})
    data = await reactivate_discount(db, discount_id, user, clock())
    return success_response("Discount enabled successfully", data)


@router.delete("/{discount_id}", response_model=APIResponse[DiscountDeleteOut])
async def delete_discount_api(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user=Depends(require_role(ADMIN_ONLY)),
):
    logger.info("Delete discount", extra={"discount_id": discount_id})
    data = await delete_discount(db, discount_id, user, clock())
    message = (
        "Discount deleted successfully"
        if data.deleted
        else "Discount has usage history and was disabled instead"
    )
    return success_response(message, data)
