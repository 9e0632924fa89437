from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin


class InventoryLevel(Base, TimestampMixin):
    """Current stock for one (location, item variant) pair.

    The row is a running balance over ``inventory_transactions`` for the same
    pair. ``version`` is bumped on every flush; a write based on a stale read
    fails with ``StaleDataError``.
    """

    __tablename__ = "inventory_levels"

    id = Column(Integer, primary_key=True)
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=False, index=True)
    item_variant_id = Column(Integer, ForeignKey("item_variants.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity_on_hand = Column(Numeric(15, 2), nullable=False, default=0)
    quantity_reserved = Column(Numeric(15, 2), nullable=False, default=0)
    reorder_point = Column(Numeric(15, 2), nullable=True)
    reorder_quantity = Column(Numeric(15, 2), nullable=True)
    last_counted_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("location_id", "item_variant_id", name="uq_inventory_level_location_variant"),
        CheckConstraint("quantity_reserved >= 0", name="ck_inventory_level_reserved_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    @hybrid_property
    def quantity_available(self):
        return self.quantity_on_hand - self.quantity_reserved

    def __repr__(self):
        return (
            f"<InventoryLevel location_id={self.location_id} item_variant_id={self.item_variant_id} "
            f"on_hand={self.quantity_on_hand} reserved={self.quantity_reserved}>"
        )
