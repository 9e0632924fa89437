from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.exceptions import NotFoundError, InventoryValidationError
from stockledger.constants.error_codes import ErrorCode
from stockledger.models.catalog.category_models import Category
from stockledger.models.enums.entity_status import EntityStatus

import logging

logger = logging.getLogger(__name__)


async def _get_category(
    db: AsyncSession,
    category_id: int,
    tenant_id: int,
    label: str = "Category",
) -> Category:
    category = await db.scalar(
        select(Category).where(
            Category.id == category_id,
            Category.tenant_id == tenant_id,
            Category.status != EntityStatus.DELETED,
        )
    )
    if not category:
        raise NotFoundError(label, category_id, ErrorCode.CATEGORY_NOT_FOUND)
    return category


async def _ancestor_ids(db: AsyncSession, category: Category) -> list[int]:
    """Walk parent links upward; stops if the chain already loops."""
    seen: list[int] = []
    parent_id = category.parent_id

    while parent_id is not None and parent_id not in seen:
        seen.append(parent_id)
        parent_id = await db.scalar(
            select(Category.parent_id).where(Category.id == parent_id)
        )

    return seen


async def assign_category_parent(
    db: AsyncSession,
    *,
    category_id: int,
    parent_id: int | None,
    tenant_id: int,
) -> Category:
    category = await _get_category(db, category_id, tenant_id)

    if parent_id is None:
        category.parent_id = None
        await db.commit()
        return category

    if parent_id == category_id:
        raise InventoryValidationError(
            "Category cannot be its own parent",
            ErrorCode.CATEGORY_CYCLE,
        )

    parent = await _get_category(db, parent_id, tenant_id, label="Parent Category")

    if category_id in await _ancestor_ids(db, parent):
        logger.info(
            "Rejected cyclic category parent",
            extra={"category_id": category_id, "parent_id": parent_id},
        )
        raise InventoryValidationError(
            "Setting this parent would create a circular reference",
            ErrorCode.CATEGORY_CYCLE,
        )

    category.parent_id = parent.id
    await db.commit()

    logger.info(
        "Category parent assigned",
        extra={"category_id": category_id, "parent_id": parent_id},
    )
    return category


async def soft_delete_category(
    db: AsyncSession,
    *,
    category_id: int,
    tenant_id: int,
) -> None:
    category = await _get_category(db, category_id, tenant_id)
    category.status = EntityStatus.DELETED
    await db.commit()
