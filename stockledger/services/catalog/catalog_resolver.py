from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockledger.core.exceptions import NotFoundError
from stockledger.constants.error_codes import ErrorCode
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.item_models import ItemVariant
from stockledger.models.enums.entity_status import EntityStatus

import logging

logger = logging.getLogger(__name__)


# =====================================================
# LOCATIONS
# =====================================================
async def resolve_location(
    db: AsyncSession,
    location_id: int,
    tenant_id: int,
    *,
    label: str = "Location",
) -> Location:
    """Return the tenant's live location or raise ``NotFoundError``.

    A location owned by another tenant and a soft-deleted location are
    reported exactly like a missing one.
    """
    location = await db.scalar(
        select(Location).where(
            Location.id == location_id,
            Location.tenant_id == tenant_id,
            Location.status != EntityStatus.DELETED,
        )
    )

    if not location:
        logger.debug(
            "Location did not resolve",
            extra={"location_id": location_id, "tenant_id": tenant_id},
        )
        raise NotFoundError(label, location_id, ErrorCode.LOCATION_NOT_FOUND)

    return location


# =====================================================
# ITEM VARIANTS
# =====================================================
async def resolve_variant(
    db: AsyncSession,
    item_variant_id: int,
    tenant_id: int,
) -> ItemVariant:
    variant = await db.scalar(
        select(ItemVariant).where(
            ItemVariant.id == item_variant_id,
            ItemVariant.tenant_id == tenant_id,
            ItemVariant.status != EntityStatus.DELETED,
        )
    )

    if not variant:
        logger.debug(
            "Item variant did not resolve",
            extra={"item_variant_id": item_variant_id, "tenant_id": tenant_id},
        )
        raise NotFoundError("ItemVariant", item_variant_id, ErrorCode.ITEM_VARIANT_NOT_FOUND)

    return variant
