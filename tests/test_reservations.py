"""Ledger engine: reserving stock and releasing reservations."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from stockledger.constants.error_codes import ErrorCode
from stockledger.constants.inventory_transaction_type import InventoryTransactionType
from stockledger.core.exceptions import (
    InsufficientInventoryError,
    InvalidOperationError,
    InventoryValidationError,
)
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
from stockledger.services.inventory import ledger_service

from conftest import ACTOR_ID


@pytest.fixture
async def stocked(db, catalog):
    """100 units on hand at the main store."""
    await ledger_service.apply_quantity_change(
        db,
        location_id=catalog.store.id,
        item_variant_id=catalog.variant.id,
        quantity_change=100,
        transaction_type=InventoryTransactionType.PURCHASE,
        actor_id=ACTOR_ID,
        tenant_id=catalog.tenant_id,
    )
    return catalog


def _key(catalog):
    return dict(location_id=catalog.store.id, item_variant_id=catalog.variant.id)


async def _reserve(db, catalog, quantity, **kwargs):
    return await ledger_service.reserve_inventory(
        db, **_key(catalog), quantity=quantity, actor_id=ACTOR_ID, tenant_id=catalog.tenant_id, **kwargs
    )


async def _release(db, catalog, quantity, **kwargs):
    return await ledger_service.release_reserved_inventory(
        db, **_key(catalog), quantity=quantity, actor_id=ACTOR_ID, tenant_id=catalog.tenant_id, **kwargs
    )


class TestReserve:

    async def test_reserve_reduces_available_only(self, db, stocked):
        level = await _reserve(db, stocked, 30, reference_type="ORDER", reference_id="SO-7")

        assert level.quantity_on_hand == Decimal("100")
        assert level.quantity_reserved == Decimal("30")
        assert level.quantity_available == Decimal("70")

    async def test_sale_cannot_consume_reserved_stock(self, db, stocked):
        await _reserve(db, stocked, 30)

        with pytest.raises(InsufficientInventoryError) as exc_info:
            await ledger_service.apply_quantity_change(
                db,
                **_key(stocked),
                quantity_change=-80,
                transaction_type=InventoryTransactionType.SALE,
                actor_id=ACTOR_ID,
                tenant_id=stocked.tenant_id,
            )

        assert exc_info.value.available == Decimal("70")
        assert exc_info.value.requested == Decimal("80")

        level = await ledger_service.get_inventory_level(db, **_key(stocked), tenant_id=stocked.tenant_id)
        assert level.quantity_on_hand == Decimal("100")
        assert level.quantity_reserved == Decimal("30")

    async def test_reserve_more_than_available(self, db, stocked):
        await _reserve(db, stocked, 60)

        with pytest.raises(InsufficientInventoryError):
            await _reserve(db, stocked, 41)

    async def test_reserve_all_available(self, db, stocked):
        level = await _reserve(db, stocked, 100)
        assert level.quantity_available == Decimal("0")

    @pytest.mark.parametrize("quantity", [0, -5])
    async def test_quantity_must_be_positive(self, db, stocked, quantity):
        with pytest.raises(InventoryValidationError) as exc_info:
            await _reserve(db, stocked, quantity)
        assert exc_info.value.error_code == ErrorCode.INVALID_QUANTITY

    async def test_reserve_entry_shape(self, db, stocked):
        await _reserve(db, stocked, 30, reference_type="ORDER", reference_id="SO-7")

        entry = (
            await db.scalars(
                select(InventoryTransaction).where(InventoryTransaction.reference_id == "SO-7")
            )
        ).one()
        assert entry.transaction_type == InventoryTransactionType.TRANSFER_OUT
        assert entry.quantity == Decimal("0")
        assert entry.reserved_quantity_change == Decimal("30")
        assert entry.notes == "Reserved 30.00 units"
        assert entry.created_by_user_id == ACTOR_ID


class TestRelease:

    async def test_release_more_than_reserved(self, db, stocked):
        await _reserve(db, stocked, 30)

        with pytest.raises(InvalidOperationError) as exc_info:
            await _release(db, stocked, 40)

        assert exc_info.value.error_code == ErrorCode.INVALID_INVENTORY_OPERATION
        assert "Reserved: 30.00, Requested: 40.00" in exc_info.value.message

        level = await ledger_service.get_inventory_level(db, **_key(stocked), tenant_id=stocked.tenant_id)
        assert level.quantity_reserved == Decimal("30")

    async def test_release_restores_available(self, db, stocked):
        await _reserve(db, stocked, 30)
        level = await _release(db, stocked, 10)

        assert level.quantity_reserved == Decimal("20")
        assert level.quantity_available == Decimal("80")
        assert level.quantity_on_hand == Decimal("100")

    async def test_release_without_any_level_row(self, db, catalog, count_levels):
        with pytest.raises(InvalidOperationError):
            await _release(db, catalog, 1)
        assert await count_levels(catalog.store.id, catalog.variant.id) == 0

    async def test_release_entry_shape(self, db, stocked):
        await _reserve(db, stocked, 30)
        await _release(db, stocked, 12, reference_type="ORDER", reference_id="SO-8")

        entry = (
            await db.scalars(
                select(InventoryTransaction).where(InventoryTransaction.reference_id == "SO-8")
            )
        ).one()
        assert entry.transaction_type == InventoryTransactionType.TRANSFER_IN
        assert entry.quantity == Decimal("0")
        assert entry.reserved_quantity_change == Decimal("-12")
        assert entry.notes == "Released 12.00 units from reservation"


class TestReservationLedgerTotals:

    async def test_sums_track_both_quantities(self, db, stocked, ledger_totals):
        await _reserve(db, stocked, 30)
        await _release(db, stocked, 5)
        await _reserve(db, stocked, 10)
        level = await ledger_service.apply_quantity_change(
            db,
            **_key(stocked),
            quantity_change=-50,
            transaction_type=InventoryTransactionType.SALE,
            actor_id=ACTOR_ID,
            tenant_id=stocked.tenant_id,
        )

        entries, quantity_sum, reserved_sum = await ledger_totals(stocked.store.id, stocked.variant.id)
        assert entries == 5
        assert quantity_sum == level.quantity_on_hand == Decimal("50")
        assert reserved_sum == level.quantity_reserved == Decimal("35")
