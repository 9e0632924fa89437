"""
Shared fixtures for the stock ledger test suite.

Every test gets its own SQLite file (aiosqlite) with the full schema created
from the ORM metadata, plus a seeded catalog for two tenants.
"""

import os
import tempfile

# Configuration is read at import time; set it before importing the package.
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("SQLITE_PATH", os.path.join(tempfile.gettempdir(), "stockledger-test.db"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from dataclasses import dataclass
from decimal import Decimal

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockledger.core.db import Base, build_engine
from stockledger.models.catalog.location_models import Location
from stockledger.models.catalog.item_models import Item, ItemVariant
from stockledger.models.catalog.category_models import Category
from stockledger.models.enums.entity_status import EntityStatus
from stockledger.models.inventory.inventory_level_models import InventoryLevel
from stockledger.models.inventory.inventory_transaction_models import InventoryTransaction

TENANT_ID = 1
OTHER_TENANT_ID = 2
ACTOR_ID = 42


@dataclass
class Catalog:
    tenant_id: int
    other_tenant_id: int
    store: Location
    warehouse: Location
    inactive_store: Location
    deleted_location: Location
    other_tenant_location: Location
    variant: ItemVariant
    second_variant: ItemVariant
    deleted_variant: ItemVariant
    other_tenant_variant: ItemVariant


# =====================================================
# DATABASE
# =====================================================
@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# =====================================================
# CATALOG SEED
# =====================================================
@pytest.fixture
async def catalog(session_factory) -> Catalog:
    async with session_factory() as session:
        category = Category(tenant_id=TENANT_ID, name="Furniture")
        session.add(category)
        await session.flush()

        item = Item(tenant_id=TENANT_ID, item_code="CHR-1", name="Oak Chair", category_id=category.id)
        other_item = Item(tenant_id=OTHER_TENANT_ID, item_code="TBL-9", name="Pine Table")
        session.add_all([item, other_item])
        await session.flush()

        locations = [
            Location(tenant_id=TENANT_ID, name="Main Store", type="STORE"),
            Location(tenant_id=TENANT_ID, name="Central Warehouse", type="WAREHOUSE"),
            Location(tenant_id=TENANT_ID, name="Old Outlet", status=EntityStatus.INACTIVE),
            Location(tenant_id=TENANT_ID, name="Closed Depot", status=EntityStatus.DELETED),
            Location(tenant_id=OTHER_TENANT_ID, name="Rival Store"),
        ]
        variants = [
            ItemVariant(tenant_id=TENANT_ID, item_id=item.id, sku="CHR-1-OAK", variant_name="Oak"),
            ItemVariant(tenant_id=TENANT_ID, item_id=item.id, sku="CHR-1-WAL", variant_name="Walnut"),
            ItemVariant(
                tenant_id=TENANT_ID,
                item_id=item.id,
                sku="CHR-1-OLD",
                variant_name="Discontinued",
                status=EntityStatus.DELETED,
            ),
            ItemVariant(tenant_id=OTHER_TENANT_ID, item_id=other_item.id, sku="TBL-9-PIN"),
        ]
        session.add_all(locations + variants)
        await session.commit()

    return Catalog(TENANT_ID, OTHER_TENANT_ID, *locations, *variants)


# =====================================================
# LEDGER HELPERS
# =====================================================
@pytest.fixture
def count_levels(session_factory):
    async def _count(location_id: int, item_variant_id: int) -> int:
        async with session_factory() as session:
            return await session.scalar(
                select(func.count(InventoryLevel.id)).where(
                    InventoryLevel.location_id == location_id,
                    InventoryLevel.item_variant_id == item_variant_id,
                )
            )
    return _count


@pytest.fixture
def ledger_totals(session_factory):
    """Return (entries, sum of quantity, sum of reserved change) for one key."""

    async def _totals(location_id: int, item_variant_id: int):
        async with session_factory() as session:
            rows = (
                await session.execute(
                    select(
                        InventoryTransaction.quantity,
                        InventoryTransaction.reserved_quantity_change,
                    ).where(
                        InventoryTransaction.location_id == location_id,
                        InventoryTransaction.item_variant_id == item_variant_id,
                    )
                )
            ).all()
        return (
            len(rows),
            sum((Decimal(q) for q, _ in rows), Decimal("0")),
            sum((Decimal(r) for _, r in rows), Decimal("0")),
        )
    return _totals
