from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.db import get_db
from stockledger.utils.get_tenant import require_permission
from stockledger.utils.response import success_response, APIResponse, APIErrorResponse

from stockledger.services.inventory.ledger_service import (
    get_inventory_level,
    list_inventory_levels,
    list_levels_by_location,
    list_levels_by_variant,
    list_low_stock,
    apply_quantity_change,
    reserve_inventory,
    release_reserved_inventory,
    transfer_inventory,
    set_reorder_policy,
)

from stockledger.schemas.inventory.inventory_level_schemas import (
    InventoryLevelOut,
    InventoryLevelListData,
    QuantityChangeCreate,
    ReservationCreate,
    ReorderPolicyUpdate,
    PosSaleCreate,
)
from stockledger.schemas.inventory.inventory_transaction_schemas import StockTransferCreate
from stockledger.constants.inventory_transaction_type import InventoryTransactionType

POS_SALE_NOTE = "Sale processed through POS integration"

router = APIRouter(
    prefix="/api/inventory",
    tags=["Inventory Levels"],
    responses={
        400: {"model": APIErrorResponse},
        404: {"model": APIErrorResponse},
        409: {"model": APIErrorResponse},
    },
)


# =========================
# LIST INVENTORY LEVELS
# =========================
@router.get(
    "/levels",
    response_model=APIResponse[InventoryLevelListData],
)
async def list_inventory_levels_api(
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    result = await list_inventory_levels(
        db,
        tenant_id=context.tenant_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Inventory levels fetched successfully", result)


# =========================
# LOW STOCK
# =========================
@router.get(
    "/levels/low-stock",
    response_model=APIResponse[list[InventoryLevelOut]],
)
async def low_stock_api(
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    items = await list_low_stock(db, tenant_id=context.tenant_id)
    return success_response("Low stock items fetched successfully", items)


# =========================
# SINGLE LEVEL
# =========================
@router.get(
    "/levels/{location_id}/{item_variant_id}",
    response_model=APIResponse[InventoryLevelOut],
)
async def get_inventory_level_api(
    location_id: int,
    item_variant_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    level = await get_inventory_level(
        db,
        location_id=location_id,
        item_variant_id=item_variant_id,
        tenant_id=context.tenant_id,
    )
    return success_response("Inventory level fetched successfully", level)


@router.get(
    "/locations/{location_id}/levels",
    response_model=APIResponse[list[InventoryLevelOut]],
)
async def list_levels_by_location_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    items = await list_levels_by_location(
        db, location_id=location_id, tenant_id=context.tenant_id
    )
    return success_response("Inventory levels fetched successfully", items)


@router.get(
    "/variants/{item_variant_id}/levels",
    response_model=APIResponse[list[InventoryLevelOut]],
)
async def list_levels_by_variant_api(
    item_variant_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    items = await list_levels_by_variant(
        db, item_variant_id=item_variant_id, tenant_id=context.tenant_id
    )
    return success_response("Inventory levels fetched successfully", items)


# =========================
# STOCK MOVEMENTS
# =========================
@router.post(
    "/adjustments",
    response_model=APIResponse[InventoryLevelOut],
)
async def apply_quantity_change_api(
    payload: QuantityChangeCreate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    level = await apply_quantity_change(
        db,
        location_id=payload.location_id,
        item_variant_id=payload.item_variant_id,
        quantity_change=payload.quantity,
        transaction_type=payload.transaction_type,
        reference_type=payload.reference_type,
        reference_id=payload.reference_id,
        notes=payload.notes,
        actor_id=context.actor_id,
        tenant_id=context.tenant_id,
    )
    return success_response("Inventory updated successfully", level)


# =========================
# POS INTEGRATION
# =========================
@router.post(
    "/integration/pos/sale",
    response_model=APIResponse[InventoryLevelOut],
)
async def pos_sale_api(
    payload: PosSaleCreate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    level = await apply_quantity_change(
        db,
        location_id=payload.location_id,
        item_variant_id=payload.item_variant_id,
        quantity_change=-payload.quantity,
        transaction_type=InventoryTransactionType.SALE,
        reference_type="ORDER",
        reference_id=payload.order_id,
        notes=POS_SALE_NOTE,
        actor_id=context.actor_id,
        tenant_id=context.tenant_id,
    )
    return success_response("POS sale processed successfully", level)


@router.post(
    "/reservations",
    response_model=APIResponse[InventoryLevelOut],
)
async def reserve_inventory_api(
    payload: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    level = await reserve_inventory(
        db,
        location_id=payload.location_id,
        item_variant_id=payload.item_variant_id,
        quantity=payload.quantity,
        reference_type=payload.reference_type,
        reference_id=payload.reference_id,
        actor_id=context.actor_id,
        tenant_id=context.tenant_id,
    )
    return success_response("Inventory reserved successfully", level)


@router.post(
    "/reservations/release",
    response_model=APIResponse[InventoryLevelOut],
)
async def release_reserved_inventory_api(
    payload: ReservationCreate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    level = await release_reserved_inventory(
        db,
        location_id=payload.location_id,
        item_variant_id=payload.item_variant_id,
        quantity=payload.quantity,
        reference_type=payload.reference_type,
        reference_id=payload.reference_id,
        actor_id=context.actor_id,
        tenant_id=context.tenant_id,
    )
    return success_response("Reservation released successfully", level)


@router.post(
    "/transfers",
    response_model=APIResponse[None],
)
async def transfer_inventory_api(
    payload: StockTransferCreate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    await transfer_inventory(
        db,
        source_location_id=payload.source_location_id,
        destination_location_id=payload.destination_location_id,
        item_variant_id=payload.item_variant_id,
        quantity=payload.quantity,
        reference_id=payload.reference_id,
        notes=payload.notes,
        actor_id=context.actor_id,
        tenant_id=context.tenant_id,
    )
    return success_response("Stock transferred successfully")


@router.put(
    "/reorder-policy",
    response_model=APIResponse[InventoryLevelOut],
)
async def set_reorder_policy_api(
    payload: ReorderPolicyUpdate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    level = await set_reorder_policy(
        db,
        location_id=payload.location_id,
        item_variant_id=payload.item_variant_id,
        reorder_point=payload.reorder_point,
        reorder_quantity=payload.reorder_quantity,
        tenant_id=context.tenant_id,
    )
    return success_response("Reorder policy updated successfully", level)
