from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.item_models import ItemVariant
from stockledger.constants.inventory_transaction_type import InventoryTransactionType
from stockledger.utils.decimal_utils import ZERO


async def append_transaction(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    transaction_type: InventoryTransactionType,
    quantity: Decimal,
    reserved_quantity_change: Decimal = ZERO,
    reference_type: str | None = None,
    reference_id: str | None = None,
    notes: str | None = None,
    actor_id: int | None = None,
) -> InventoryTransaction:
    """Insert one ledger entry in the caller's transaction (no commit)."""
    transaction = InventoryTransaction(
        location_id=location_id,
        item_variant_id=item_variant_id,
        transaction_type=transaction_type,
        quantity=quantity,
        reserved_quantity_change=reserved_quantity_change,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        created_by_user_id=actor_id,
    )
    db.add(transaction)
    await db.flush()
    return transaction


async def query_transactions(
    db: AsyncSession,
    tenant_id: int,
    *,
    item_variant_id: int | None = None,
    location_id: int | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
    page: int = 1,
    page_size: int | None = None,
):
    filters = [Location.tenant_id == tenant_id]

    if item_variant_id is not None:
        filters.append(InventoryTransaction.item_variant_id == item_variant_id)

    if location_id is not None:
        filters.append(InventoryTransaction.location_id == location_id)

    if reference_type is not None:
        filters.append(InventoryTransaction.reference_type == reference_type)

    if reference_id is not None:
        filters.append(InventoryTransaction.reference_id == reference_id)

    total = await db.scalar(
        select(func.count(InventoryTransaction.id))
        .join(Location, InventoryTransaction.location_id == Location.id)
        .where(*filters)
    )

    query = (
        select(InventoryTransaction, Location, ItemVariant)
        .join(Location, InventoryTransaction.location_id == Location.id)
        .join(ItemVariant, InventoryTransaction.item_variant_id == ItemVariant.id)
        .where(*filters)
        .order_by(
            InventoryTransaction.created_at.asc(),
            InventoryTransaction.id.asc(),
        )
    )
    if page_size:
        query = query.offset((page - 1) * page_size).limit(page_size)

    rows = (await db.execute(query)).all()
    return total or 0, rows
