"""Ledger engine: moving stock between two locations as one unit."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from stockledger.constants.error_codes import ErrorCode
from stockledger.constants.inventory_transaction_type import InventoryTransactionType
from stockledger.core.exceptions import (
    InsufficientInventoryError,
    InventoryValidationError,
    NotFoundError,
)
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
from stockledger.services.inventory import ledger_service
from stockledger.services.inventory.level_locks import held_keys

from conftest import ACTOR_ID


@pytest.fixture
async def stocked(db, catalog):
    for location, quantity in ((catalog.store, 100), (catalog.warehouse, 7)):
        await ledger_service.apply_quantity_change(
            db,
            location_id=location.id,
            item_variant_id=catalog.variant.id,
            quantity_change=quantity,
            transaction_type=InventoryTransactionType.PURCHASE,
            actor_id=ACTOR_ID,
            tenant_id=catalog.tenant_id,
        )
    return catalog


async def _transfer(db, catalog, quantity, **kwargs):
    params = dict(
        source_location_id=catalog.store.id,
        destination_location_id=catalog.warehouse.id,
        item_variant_id=catalog.variant.id,
        quantity=quantity,
        actor_id=ACTOR_ID,
        tenant_id=catalog.tenant_id,
    )
    params.update(kwargs)
    return await ledger_service.transfer_inventory(db, **params)


async def _on_hand(db, catalog, location):
    level = await ledger_service.get_inventory_level(
        db,
        location_id=location.id,
        item_variant_id=catalog.variant.id,
        tenant_id=catalog.tenant_id,
    )
    return level.quantity_on_hand


async def _transfer_entries(db):
    return (
        await db.scalars(
            select(InventoryTransaction)
            .where(InventoryTransaction.reference_type == "TRANSFER")
            .order_by(InventoryTransaction.id)
        )
    ).all()


class TestTransfer:

    async def test_moves_stock_and_writes_two_entries(self, db, stocked):
        result = await _transfer(db, stocked, 20, reference_id="TR-1", notes="Weekly restock")

        assert result is None
        assert await _on_hand(db, stocked, stocked.store) == Decimal("80")
        assert await _on_hand(db, stocked, stocked.warehouse) == Decimal("27")

        out_entry, in_entry = await _transfer_entries(db)
        assert out_entry.transaction_type == InventoryTransactionType.TRANSFER_OUT
        assert out_entry.location_id == stocked.store.id
        assert out_entry.quantity == Decimal("-20")
        assert out_entry.notes == "Transfer to Central Warehouse: Weekly restock"
        assert out_entry.reference_id == "TR-1"

        assert in_entry.transaction_type == InventoryTransactionType.TRANSFER_IN
        assert in_entry.location_id == stocked.warehouse.id
        assert in_entry.quantity == Decimal("20")
        assert in_entry.notes == "Transfer from Main Store: Weekly restock"

    async def test_notes_without_free_text(self, db, stocked):
        await _transfer(db, stocked, 1)

        out_entry, in_entry = await _transfer_entries(db)
        assert out_entry.notes == "Transfer to Central Warehouse"
        assert in_entry.notes == "Transfer from Main Store"

    async def test_destination_row_is_created_on_demand(self, db, stocked, count_levels):
        assert await count_levels(stocked.inactive_store.id, stocked.variant.id) == 0

        await _transfer(db, stocked, 5, destination_location_id=stocked.inactive_store.id)

        assert await count_levels(stocked.inactive_store.id, stocked.variant.id) == 1
        assert await _on_hand(db, stocked, stocked.inactive_store) == Decimal("5")

    async def test_insufficient_source_changes_nothing(self, db, stocked):
        with pytest.raises(InsufficientInventoryError):
            await _transfer(db, stocked, 101)

        assert await _on_hand(db, stocked, stocked.store) == Decimal("100")
        assert await _on_hand(db, stocked, stocked.warehouse) == Decimal("7")
        assert await _transfer_entries(db) == []

    async def test_failed_destination_leg_restores_source(self, db, stocked, monkeypatch):
        original = ledger_service._apply_quantity_change
        calls = []

        async def failing_second_leg(*args, **kwargs):
            calls.append(kwargs["transaction_type"])
            if len(calls) == 2:
                raise RuntimeError("destination write failed")
            return await original(*args, **kwargs)

        monkeypatch.setattr(ledger_service, "_apply_quantity_change", failing_second_leg)

        with pytest.raises(RuntimeError):
            await _transfer(db, stocked, 20)

        assert calls == [InventoryTransactionType.TRANSFER_OUT, InventoryTransactionType.TRANSFER_IN]
        assert await _on_hand(db, stocked, stocked.store) == Decimal("100")
        assert await _on_hand(db, stocked, stocked.warehouse) == Decimal("7")
        assert await _transfer_entries(db) == []
        assert held_keys() == []

    async def test_same_source_and_destination(self, db, stocked):
        with pytest.raises(InventoryValidationError) as exc_info:
            await _transfer(db, stocked, 1, destination_location_id=stocked.store.id)
        assert exc_info.value.error_code == ErrorCode.TRANSFER_INVALID_LOCATION

    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_quantity_must_be_positive(self, db, stocked, quantity):
        with pytest.raises(InventoryValidationError):
            await _transfer(db, stocked, quantity)

    async def test_deleted_destination_is_not_found(self, db, stocked):
        with pytest.raises(NotFoundError) as exc_info:
            await _transfer(db, stocked, 1, destination_location_id=stocked.deleted_location.id)

        assert exc_info.value.message == (
            f"Destination Location not found with id: {stocked.deleted_location.id}"
        )
        assert await _on_hand(db, stocked, stocked.store) == Decimal("100")

    async def test_other_tenants_destination_is_not_found(self, db, stocked):
        with pytest.raises(NotFoundError):
            await _transfer(db, stocked, 1, destination_location_id=stocked.other_tenant_location.id)
        assert await _transfer_entries(db) == []
