import asyncio
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from stockledger.core.config import LEDGER_MAX_RETRIES, LEDGER_RETRY_BACKOFF_MS
from stockledger.core.exceptions import (
    AppException,
    ConcurrentModificationError,
    InsufficientInventoryError,
    InvalidOperationError,
    InventoryValidationError,
)
from stockledger.constants.error_codes import ErrorCode
from stockledger.constants.inventory_transaction_type import (
    InventoryTransactionType,
    TRANSFER_REFERENCE_TYPE,
)
from stockledger.models.inventory.inventory_level_models import InventoryLevel
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.item_models import ItemVariant
from stockledger.schemas.inventory.inventory_level_schemas import (
    InventoryLevelOut,
    InventoryLevelListData,
)
from stockledger.schemas.inventory.inventory_transaction_schemas import (
    InventoryTransactionOut,
    InventoryTransactionListData,
)
from stockledger.services.catalog.catalog_resolver import resolve_location, resolve_variant
from stockledger.services.inventory import inventory_level_store as level_store
from stockledger.services.inventory import inventory_transaction_log as transaction_log
from stockledger.services.inventory.level_locks import level_locks
from stockledger.utils.decimal_utils import ZERO, to_quantity, optional_quantity

import logging

logger = logging.getLogger(__name__)


# Failures caused by a competing writer; the unit is re-read and re-validated.
RETRYABLE_ERRORS = (StaleDataError, OperationalError, IntegrityError)


# =====================================================
# PROJECTION
# =====================================================
def is_low_stock(quantity_on_hand: Decimal, reorder_point: Decimal | None) -> bool:
    """Low when a reorder point is set (> 0) and on-hand is at or below it."""
    if reorder_point is None or reorder_point <= 0:
        return False
    return quantity_on_hand <= reorder_point


def _map_level(
    level: InventoryLevel | None,
    location: Location,
    variant: ItemVariant,
) -> InventoryLevelOut:
    if level is None:
        on_hand = reserved = ZERO
        reorder_point = reorder_quantity = ZERO
        last_counted_at = None
    else:
        on_hand = to_quantity(level.quantity_on_hand)
        reserved = to_quantity(level.quantity_reserved)
        reorder_point = optional_quantity(level.reorder_point)
        reorder_quantity = optional_quantity(level.reorder_quantity)
        last_counted_at = level.last_counted_at

    return InventoryLevelOut(
        location_id=location.id,
        location_name=location.name,
        item_variant_id=variant.id,
        sku=variant.sku,
        variant_name=variant.variant_name,
        item_name=variant.item.name if variant.item else None,
        quantity_on_hand=on_hand,
        quantity_reserved=reserved,
        quantity_available=on_hand - reserved,
        reorder_point=reorder_point,
        reorder_quantity=reorder_quantity,
        last_counted_at=last_counted_at,
        low_stock=is_low_stock(on_hand, reorder_point),
    )


def _map_transaction(
    transaction: InventoryTransaction,
    location: Location,
    variant: ItemVariant,
) -> InventoryTransactionOut:
    return InventoryTransactionOut(
        id=transaction.id,
        location_id=location.id,
        location_name=location.name,
        item_variant_id=variant.id,
        sku=variant.sku,
        item_name=variant.item.name if variant.item else None,
        transaction_type=transaction.transaction_type,
        quantity=to_quantity(transaction.quantity),
        reserved_quantity_change=to_quantity(transaction.reserved_quantity_change),
        reference_type=transaction.reference_type,
        reference_id=transaction.reference_id,
        notes=transaction.notes,
        created_by_user_id=transaction.created_by_user_id,
        created_at=transaction.created_at,
    )


# =====================================================
# INPUT VALIDATION
# =====================================================
def _require_tenant(tenant_id) -> int:
    if tenant_id is None:
        raise InventoryValidationError("Tenant id is required")
    return tenant_id


def _quantity(value, field: str = "quantity") -> Decimal:
    try:
        return to_quantity(value)
    except ValueError:
        raise InventoryValidationError(
            f"{field} must be a number",
            ErrorCode.INVALID_QUANTITY,
        )


def _positive_quantity(value, field: str = "quantity") -> Decimal:
    quantity = _quantity(value, field)
    if quantity <= 0:
        raise InventoryValidationError(
            f"{field} must be greater than zero",
            ErrorCode.INVALID_QUANTITY,
        )
    return quantity


def _non_negative_quantity(value, field: str) -> Decimal:
    quantity = _quantity(value, field)
    if quantity < 0:
        raise InventoryValidationError(
            f"{field} cannot be negative",
            ErrorCode.INVALID_QUANTITY,
        )
    return quantity


def _transaction_type(value) -> InventoryTransactionType:
    try:
        return InventoryTransactionType(value)
    except ValueError:
        raise InventoryValidationError(
            f"Unknown transaction type: {value}",
            ErrorCode.INVALID_TRANSACTION_TYPE,
        )


# =====================================================
# ATOMIC UNIT WITH BOUNDED RETRY
# =====================================================
async def _run_atomic(db: AsyncSession, operation: str, work):
    """Run ``work`` and commit it as one database transaction.

    Business-rule failures roll back and propagate unchanged. Concurrency
    failures roll back and re-run ``work`` from a fresh read, up to
    ``LEDGER_MAX_RETRIES`` attempts.
    """
    attempt = 0

    while True:
        attempt += 1
        try:
            result = await work()
            await db.commit()
            return result

        except AppException:
            await db.rollback()
            raise

        except RETRYABLE_ERRORS as exc:
            await db.rollback()

            if attempt >= LEDGER_MAX_RETRIES:
                logger.error(
                    "Inventory update gave up after concurrent modifications",
                    extra={"operation": operation, "attempts": attempt},
                )
                raise ConcurrentModificationError(attempt) from exc

            logger.warning(
                "Concurrent inventory update detected, retrying",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "error": type(exc).__name__,
                },
            )
            await asyncio.sleep(LEDGER_RETRY_BACKOFF_MS / 1000 * attempt)

        except Exception:
            await db.rollback()
            raise


# =====================================================
# QUANTITY CHANGE (single leg, no commit)
# =====================================================
async def _apply_quantity_change(
    db: AsyncSession,
    *,
    location: Location,
    variant: ItemVariant,
    quantity_change: Decimal,
    transaction_type: InventoryTransactionType,
    reference_type: str | None,
    reference_id: str | None,
    notes: str | None,
    actor_id: int | None,
) -> InventoryLevelOut:
    level = await level_store.get_or_create_level_for_update(db, location.id, variant.id)

    # Receiving stock is never blocked; only reductions are checked.
    if quantity_change < 0:
        available = level.quantity_on_hand - level.quantity_reserved
        if available < -quantity_change:
            raise InsufficientInventoryError(
                variant.sku,
                location.name,
                to_quantity(available),
                -quantity_change,
            )

    level.quantity_on_hand = to_quantity(level.quantity_on_hand + quantity_change)

    if transaction_type == InventoryTransactionType.COUNT:
        level.last_counted_at = datetime.now(timezone.utc)

    await transaction_log.append_transaction(
        db,
        location_id=location.id,
        item_variant_id=variant.id,
        transaction_type=transaction_type,
        quantity=quantity_change,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        actor_id=actor_id,
    )

    await db.flush()
    return _map_level(level, location, variant)


# =====================================================
# READ: SINGLE LEVEL
# =====================================================
async def get_inventory_level(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    tenant_id: int,
) -> InventoryLevelOut:
    tenant_id = _require_tenant(tenant_id)

    location = await resolve_location(db, location_id, tenant_id)
    variant = await resolve_variant(db, item_variant_id, tenant_id)

    # Missing row reads as zero stock and is not persisted.
    level = await level_store.get_level(db, location.id, variant.id)
    return _map_level(level, location, variant)


# =====================================================
# MUTATE: QUANTITY CHANGE
# =====================================================
async def apply_quantity_change(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    quantity_change,
    transaction_type,
    reference_type: str | None = None,
    reference_id: str | None = None,
    notes: str | None = None,
    actor_id: int | None,
    tenant_id: int,
) -> InventoryLevelOut:
    tenant_id = _require_tenant(tenant_id)
    quantity_change = _quantity(quantity_change, "quantity_change")
    transaction_type = _transaction_type(transaction_type)

    async def work():
        location = await resolve_location(db, location_id, tenant_id)
        variant = await resolve_variant(db, item_variant_id, tenant_id)
        return await _apply_quantity_change(
            db,
            location=location,
            variant=variant,
            quantity_change=quantity_change,
            transaction_type=transaction_type,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=notes,
            actor_id=actor_id,
        )

    async with level_locks((location_id, item_variant_id)):
        result = await _run_atomic(db, "apply_quantity_change", work)

    logger.info(
        "Inventory quantity changed",
        extra={
            "tenant_id": tenant_id,
            "location_id": location_id,
            "item_variant_id": item_variant_id,
            "transaction_type": transaction_type.value,
            "quantity_change": str(quantity_change),
            "quantity_on_hand": str(result.quantity_on_hand),
        },
    )
    return result


# =====================================================
# MUTATE: RESERVE
# =====================================================
async def reserve_inventory(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    quantity,
    reference_type: str | None = None,
    reference_id: str | None = None,
    actor_id: int | None,
    tenant_id: int,
) -> InventoryLevelOut:
    tenant_id = _require_tenant(tenant_id)
    quantity = _positive_quantity(quantity)

    async def work():
        location = await resolve_location(db, location_id, tenant_id)
        variant = await resolve_variant(db, item_variant_id, tenant_id)
        level = await level_store.get_or_create_level_for_update(db, location.id, variant.id)

        available = level.quantity_on_hand - level.quantity_reserved
        if available < quantity:
            raise InsufficientInventoryError(
                variant.sku,
                location.name,
                to_quantity(available),
                quantity,
            )

        level.quantity_reserved = to_quantity(level.quantity_reserved + quantity)

        # On-hand is untouched, so the ledger quantity stays zero; the
        # reservation delta has its own column.
        await transaction_log.append_transaction(
            db,
            location_id=location.id,
            item_variant_id=variant.id,
            transaction_type=InventoryTransactionType.TRANSFER_OUT,
            quantity=ZERO,
            reserved_quantity_change=quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=f"Reserved {quantity} units",
            actor_id=actor_id,
        )

        await db.flush()
        return _map_level(level, location, variant)

    async with level_locks((location_id, item_variant_id)):
        result = await _run_atomic(db, "reserve_inventory", work)

    logger.info(
        "Inventory reserved",
        extra={
            "tenant_id": tenant_id,
            "location_id": location_id,
            "item_variant_id": item_variant_id,
            "quantity": str(quantity),
            "quantity_reserved": str(result.quantity_reserved),
        },
    )
    return result


# =====================================================
# MUTATE: RELEASE
# =====================================================
async def release_reserved_inventory(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    quantity,
    reference_type: str | None = None,
    reference_id: str | None = None,
    actor_id: int | None,
    tenant_id: int,
) -> InventoryLevelOut:
    tenant_id = _require_tenant(tenant_id)
    quantity = _positive_quantity(quantity)

    async def work():
        location = await resolve_location(db, location_id, tenant_id)
        variant = await resolve_variant(db, item_variant_id, tenant_id)
        level = await level_store.lock_level(db, location.id, variant.id)

        reserved = level.quantity_reserved if level else ZERO
        if reserved < quantity:
            raise InvalidOperationError(
                "Cannot release more than the reserved quantity. "
                f"Reserved: {to_quantity(reserved)}, Requested: {quantity}",
                {"reserved": str(to_quantity(reserved)), "requested": str(quantity)},
            )

        level.quantity_reserved = to_quantity(level.quantity_reserved - quantity)

        await transaction_log.append_transaction(
            db,
            location_id=location.id,
            item_variant_id=variant.id,
            transaction_type=InventoryTransactionType.TRANSFER_IN,
            quantity=ZERO,
            reserved_quantity_change=-quantity,
            reference_type=reference_type,
            reference_id=reference_id,
            notes=f"Released {quantity} units from reservation",
            actor_id=actor_id,
        )

        await db.flush()
        return _map_level(level, location, variant)

    async with level_locks((location_id, item_variant_id)):
        result = await _run_atomic(db, "release_reserved_inventory", work)

    logger.info(
        "Inventory reservation released",
        extra={
            "tenant_id": tenant_id,
            "location_id": location_id,
            "item_variant_id": item_variant_id,
            "quantity": str(quantity),
            "quantity_reserved": str(result.quantity_reserved),
        },
    )
    return result


# =====================================================
# MUTATE: TRANSFER
# =====================================================
def _transfer_note(direction: str, counterpart: Location, notes: str | None) -> str:
    note = f"Transfer {direction} {counterpart.name}"
    return f"{note}: {notes}" if notes else note


async def transfer_inventory(
    db: AsyncSession,
    *,
    source_location_id: int,
    destination_location_id: int,
    item_variant_id: int,
    quantity,
    reference_id: str | None = None,
    notes: str | None = None,
    actor_id: int | None,
    tenant_id: int,
) -> None:
    tenant_id = _require_tenant(tenant_id)
    quantity = _positive_quantity(quantity)

    if source_location_id == destination_location_id:
        raise InventoryValidationError(
            "Source and destination locations must differ",
            ErrorCode.TRANSFER_INVALID_LOCATION,
        )

    async def work():
        source = await resolve_location(db, source_location_id, tenant_id, label="Source Location")
        destination = await resolve_location(
            db, destination_location_id, tenant_id, label="Destination Location"
        )
        variant = await resolve_variant(db, item_variant_id, tenant_id)

        # Both legs share this transaction; neither commits on its own.
        await _apply_quantity_change(
            db,
            location=source,
            variant=variant,
            quantity_change=-quantity,
            transaction_type=InventoryTransactionType.TRANSFER_OUT,
            reference_type=TRANSFER_REFERENCE_TYPE,
            reference_id=reference_id,
            notes=_transfer_note("to", destination, notes),
            actor_id=actor_id,
        )
        await _apply_quantity_change(
            db,
            location=destination,
            variant=variant,
            quantity_change=quantity,
            transaction_type=InventoryTransactionType.TRANSFER_IN,
            reference_type=TRANSFER_REFERENCE_TYPE,
            reference_id=reference_id,
            notes=_transfer_note("from", source, notes),
            actor_id=actor_id,
        )

    async with level_locks(
        (source_location_id, item_variant_id),
        (destination_location_id, item_variant_id),
    ):
        await _run_atomic(db, "transfer_inventory", work)

    logger.info(
        "Inventory transferred",
        extra={
            "tenant_id": tenant_id,
            "source_location_id": source_location_id,
            "destination_location_id": destination_location_id,
            "item_variant_id": item_variant_id,
            "quantity": str(quantity),
        },
    )


# =====================================================
# MUTATE: REORDER POLICY
# =====================================================
async def set_reorder_policy(
    db: AsyncSession,
    *,
    location_id: int,
    item_variant_id: int,
    reorder_point,
    reorder_quantity,
    tenant_id: int,
) -> InventoryLevelOut:
    tenant_id = _require_tenant(tenant_id)
    reorder_point = _non_negative_quantity(reorder_point, "reorder_point")
    reorder_quantity = _non_negative_quantity(reorder_quantity, "reorder_quantity")

    async def work():
        location = await resolve_location(db, location_id, tenant_id)
        variant = await resolve_variant(db, item_variant_id, tenant_id)
        level = await level_store.get_or_create_level_for_update(db, location.id, variant.id)

        # Policy changes are not stock movements: no ledger entry.
        level.reorder_point = reorder_point
        level.reorder_quantity = reorder_quantity

        await db.flush()
        return _map_level(level, location, variant)

    async with level_locks((location_id, item_variant_id)):
        result = await _run_atomic(db, "set_reorder_policy", work)

    logger.info(
        "Reorder policy set",
        extra={
            "tenant_id": tenant_id,
            "location_id": location_id,
            "item_variant_id": item_variant_id,
            "reorder_point": str(reorder_point),
            "reorder_quantity": str(reorder_quantity),
        },
    )
    return result


# =====================================================
# READ: LISTINGS
# =====================================================
async def list_low_stock(
    db: AsyncSession,
    *,
    tenant_id: int,
) -> list[InventoryLevelOut]:
    tenant_id = _require_tenant(tenant_id)
    logger.debug("Fetch low stock inventory levels", extra={"tenant_id": tenant_id})

    rows = await level_store.query_low_stock(db, tenant_id)
    return [_map_level(level, location, variant) for level, location, variant in rows]


async def list_levels_by_location(
    db: AsyncSession,
    *,
    location_id: int,
    tenant_id: int,
) -> list[InventoryLevelOut]:
    tenant_id = _require_tenant(tenant_id)
    location = await resolve_location(db, location_id, tenant_id)

    _, rows = await level_store.query_levels(db, tenant_id, location_id=location.id)
    return [_map_level(level, loc, variant) for level, loc, variant in rows]


async def list_levels_by_variant(
    db: AsyncSession,
    *,
    item_variant_id: int,
    tenant_id: int,
) -> list[InventoryLevelOut]:
    tenant_id = _require_tenant(tenant_id)
    variant = await resolve_variant(db, item_variant_id, tenant_id)

    _, rows = await level_store.query_levels(db, tenant_id, item_variant_id=variant.id)
    return [_map_level(level, location, v) for level, location, v in rows]


async def list_inventory_levels(
    db: AsyncSession,
    *,
    tenant_id: int,
    page: int = 1,
    page_size: int = 20,
) -> InventoryLevelListData:
    tenant_id = _require_tenant(tenant_id)
    total, rows = await level_store.query_levels(
        db, tenant_id, page=page, page_size=page_size
    )
    return InventoryLevelListData(
        total=total,
        items=[_map_level(level, location, variant) for level, location, variant in rows],
    )


# =====================================================
# READ: HISTORY
# =====================================================
async def list_transactions(
    db: AsyncSession,
    *,
    tenant_id: int,
    item_variant_id: int | None = None,
    location_id: int | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> InventoryTransactionListData:
    tenant_id = _require_tenant(tenant_id)

    if page < 1:
        raise InventoryValidationError("page must be >= 1")

    if item_variant_id is not None:
        await resolve_variant(db, item_variant_id, tenant_id)

    if location_id is not None:
        await resolve_location(db, location_id, tenant_id)

    total, rows = await transaction_log.query_transactions(
        db,
        tenant_id,
        item_variant_id=item_variant_id,
        location_id=location_id,
        reference_type=reference_type,
        reference_id=reference_id,
        page=page,
        page_size=page_size,
    )
    return InventoryTransactionListData(
        total=total,
        items=[_map_transaction(tx, location, variant) for tx, location, variant in rows],
    )
