from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from stockledger.models.inventory.inventory_level_models import InventoryLevel
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.item_models import ItemVariant
from stockledger.models.enums.entity_status import EntityStatus
from stockledger.utils.decimal_utils import ZERO


# =====================================================
# KEYED ACCESS
# =====================================================
async def get_level(
    db: AsyncSession,
    location_id: int,
    item_variant_id: int,
) -> InventoryLevel | None:
    return await db.scalar(
        select(InventoryLevel).where(
            InventoryLevel.location_id == location_id,
            InventoryLevel.item_variant_id == item_variant_id,
        )
    )


async def lock_level(
    db: AsyncSession,
    location_id: int,
    item_variant_id: int,
) -> InventoryLevel | None:
    # FOR UPDATE is a no-op on SQLite; the version column still guards writes.
    result = await db.execute(
        select(InventoryLevel)
        .where(
            InventoryLevel.location_id == location_id,
            InventoryLevel.item_variant_id == item_variant_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_level_for_update(
    db: AsyncSession,
    location_id: int,
    item_variant_id: int,
) -> InventoryLevel:
    level = await lock_level(db, location_id, item_variant_id)

    if not level:
        level = InventoryLevel(
            location_id=location_id,
            item_variant_id=item_variant_id,
            quantity_on_hand=ZERO,
            quantity_reserved=ZERO,
            reorder_point=ZERO,
            reorder_quantity=ZERO,
        )
        db.add(level)
        # A racing insert on the same pair surfaces here as IntegrityError.
        await db.flush()

    return level


# =====================================================
# TENANT SCANS
# =====================================================
def _tenant_levels_query(tenant_id: int, *columns):
    return (
        select(*(columns or (InventoryLevel, Location, ItemVariant)))
        .select_from(InventoryLevel)
        .join(Location, InventoryLevel.location_id == Location.id)
        .join(ItemVariant, InventoryLevel.item_variant_id == ItemVariant.id)
        .where(
            Location.tenant_id == tenant_id,
            Location.status != EntityStatus.DELETED,
            ItemVariant.status != EntityStatus.DELETED,
        )
    )


async def query_low_stock(db: AsyncSession, tenant_id: int):
    stmt = (
        _tenant_levels_query(tenant_id)
        .where(
            InventoryLevel.reorder_point > 0,
            InventoryLevel.quantity_on_hand <= InventoryLevel.reorder_point,
        )
        .order_by(Location.name.asc(), ItemVariant.sku.asc())
    )
    return (await db.execute(stmt)).all()


async def query_levels(
    db: AsyncSession,
    tenant_id: int,
    *,
    location_id: int | None = None,
    item_variant_id: int | None = None,
    page: int = 1,
    page_size: int | None = None,
):
    filters = []

    if location_id is not None:
        filters.append(InventoryLevel.location_id == location_id)

    if item_variant_id is not None:
        filters.append(InventoryLevel.item_variant_id == item_variant_id)

    total = await db.scalar(
        _tenant_levels_query(tenant_id, func.count(InventoryLevel.id)).where(*filters)
    )

    query = (
        _tenant_levels_query(tenant_id)
        .where(*filters)
        .order_by(Location.name.asc(), ItemVariant.sku.asc())
    )
    if page_size:
        query = query.offset((page - 1) * page_size).limit(page_size)

    rows = (await db.execute(query)).all()
    return total or 0, rows
