"""Ledger entries are append-only once persisted."""

import pytest
from sqlalchemy import select, update, delete

from stockledger.constants.inventory_transaction_type import InventoryTransactionType
from stockledger.core.exceptions import ImmutableTransactionError
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
from stockledger.services.inventory import ledger_service

from conftest import ACTOR_ID


@pytest.fixture
async def entry(db, catalog):
    await ledger_service.apply_quantity_change(
        db,
        location_id=catalog.store.id,
        item_variant_id=catalog.variant.id,
        quantity_change=10,
        transaction_type=InventoryTransactionType.PURCHASE,
        notes="original",
        actor_id=ACTOR_ID,
        tenant_id=catalog.tenant_id,
    )
    return (await db.scalars(select(InventoryTransaction))).one()


class TestAppendOnlyLedger:

    async def test_update_through_unit_of_work_is_blocked(self, db, entry):
        entry.notes = "rewritten"

        with pytest.raises(ImmutableTransactionError):
            await db.flush()
        await db.rollback()

        stored = (await db.scalars(select(InventoryTransaction.notes))).one()
        assert stored == "original"

    async def test_delete_through_unit_of_work_is_blocked(self, db, entry):
        await db.delete(entry)

        with pytest.raises(ImmutableTransactionError):
            await db.flush()
        await db.rollback()

        assert len((await db.scalars(select(InventoryTransaction))).all()) == 1

    async def test_bulk_update_is_blocked(self, db, entry):
        with pytest.raises(ImmutableTransactionError):
            await db.execute(update(InventoryTransaction).values(notes="bulk"))

    async def test_bulk_delete_is_blocked(self, db, entry):
        with pytest.raises(ImmutableTransactionError):
            await db.execute(delete(InventoryTransaction))
