from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.db import get_db
from stockledger.utils.get_tenant import require_permission
from stockledger.utils.response import success_response, APIResponse, APIErrorResponse

from stockledger.schemas.catalog.category_schemas import CategoryParentUpdate, CategoryOut
from stockledger.services.catalog.category_service import (
    assign_category_parent,
    soft_delete_category,
)

router = APIRouter(
    prefix="/api/catalog/categories",
    tags=["Catalog Categories"],
    responses={
        400: {"model": APIErrorResponse},
        404: {"model": APIErrorResponse},
    },
)


@router.put(
    "/{category_id}/parent",
    response_model=APIResponse[CategoryOut],
)
async def assign_category_parent_api(
    category_id: int,
    payload: CategoryParentUpdate,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    category = await assign_category_parent(
        db,
        category_id=category_id,
        parent_id=payload.parent_id,
        tenant_id=context.tenant_id,
    )
    return success_response(
        "Category parent updated",
        CategoryOut.model_validate(category),
    )


@router.delete(
    "/{category_id}",
    response_model=APIResponse[None],
)
async def delete_category_api(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    context=Depends(require_permission("INVENTORY_EDIT")),
):
    await soft_delete_category(db, category_id=category_id, tenant_id=context.tenant_id)
    return success_response("Category deleted")
