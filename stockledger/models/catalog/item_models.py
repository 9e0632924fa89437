from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin, TenantMixin, StatusMixin


class Item(Base, TimestampMixin, TenantMixin, StatusMixin):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    item_code = Column(String(50), nullable=False, unique=True)
    upc_code = Column(String(50), nullable=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id", ondelete="SET NULL"), nullable=True, index=True)

    def __repr__(self):
        return f"<Item id={self.id} code={self.item_code} name={self.name}>"


class ItemVariant(Base, TimestampMixin, TenantMixin, StatusMixin):
    __tablename__ = "item_variants"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    variant_name = Column(String(100), nullable=True)
    sku = Column(String(50), nullable=False, unique=True, index=True)

    # Needed for every level/transaction projection, so always loaded.
    item = relationship("Item", lazy="selectin")

    def __repr__(self):
        return f"<ItemVariant id={self.id} sku={self.sku}>"
