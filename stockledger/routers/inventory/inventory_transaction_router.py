from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.db import get_db
from stockledger.utils.get_tenant import require_permission
from stockledger.utils.response import success_response, APIResponse, APIErrorResponse

from stockledger.services.inventory.ledger_service import list_transactions
from stockledger.schemas.inventory.inventory_transaction_schemas import (
    InventoryTransactionListData,
)

router = APIRouter(
    prefix="/api/inventory/transactions",
    tags=["Inventory Transactions"],
    responses={404: {"model": APIErrorResponse}},
)


# =========================
# LIST / FILTER HISTORY
# =========================
@router.get(
    "/",
    response_model=APIResponse[InventoryTransactionListData],
)
async def list_transactions_api(
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
    item_variant_id: int | None = Query(None),
    location_id: int | None = Query(None),
    reference_type: str | None = Query(None),
    reference_id: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    result = await list_transactions(
        db,
        tenant_id=context.tenant_id,
        item_variant_id=item_variant_id,
        location_id=location_id,
        reference_type=reference_type,
        reference_id=reference_id,
        page=page,
        page_size=page_size,
    )
    return success_response("Inventory transactions fetched successfully", result)


@router.get(
    "/variant/{item_variant_id}",
    response_model=APIResponse[InventoryTransactionListData],
)
async def variant_history_api(
    item_variant_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    result = await list_transactions(
        db, tenant_id=context.tenant_id, item_variant_id=item_variant_id
    )
    return success_response("Inventory transactions fetched successfully", result)


@router.get(
    "/location/{location_id}",
    response_model=APIResponse[InventoryTransactionListData],
)
async def location_history_api(
    location_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    result = await list_transactions(
        db, tenant_id=context.tenant_id, location_id=location_id
    )
    return success_response("Inventory transactions fetched successfully", result)


@router.get(
    "/reference/{reference_type}/{reference_id}",
    response_model=APIResponse[InventoryTransactionListData],
)
async def reference_history_api(
    reference_type: str,
    reference_id: str,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_VIEW")),
):
    result = await list_transactions(
        db,
        tenant_id=context.tenant_id,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    return success_response("Inventory transactions fetched successfully", result)
