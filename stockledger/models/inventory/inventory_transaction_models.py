from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, ForeignKey, Index
from sqlalchemy.sql import func
from stockledger.core.db import Base
from stockledger.constants.inventory_transaction_type import InventoryTransactionType


class InventoryTransaction(Base):
    """One immutable ledger entry.

    ``quantity`` is the signed on-hand delta. ``reserved_quantity_change`` is
    the signed reservation delta; it is non-zero only for reserve/release
    entries, whose ``quantity`` is always zero.
    """

    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    item_variant_id = Column(Integer, ForeignKey("item_variants.id", ondelete="RESTRICT"), nullable=False, index=True)
    transaction_type = Column(
        Enum(InventoryTransactionType, native_enum=False, length=20),
        nullable=False,
    )
    quantity = Column(Numeric(15, 2), nullable=False)
    reserved_quantity_change = Column(Numeric(15, 2), nullable=False, default=0)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_by_user_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index("ix_inventory_transaction_location_variant", "location_id", "item_variant_id"),
        Index("ix_inventory_transaction_reference", "reference_type", "reference_id"),
    )

    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return (
            f"<InventoryTransaction id={self.id} type={self.transaction_type} "
            f"location_id={self.location_id} item_variant_id={self.item_variant_id} qty={self.quantity}>"
        )
