from sqlalchemy import Column, Integer, String, Text, Index
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin, TenantMixin, StatusMixin


class Location(Base, TimestampMixin, TenantMixin, StatusMixin):
    """A store, warehouse or other place stock is held. Owned by one tenant."""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    type = Column(String(50), nullable=False, default="STORE")  # STORE, WAREHOUSE, etc.
    address = Column(Text, nullable=True)

    __table_args__ = (Index("ix_location_tenant_status", "tenant_id", "status"),)

    def __repr__(self):
        return f"<Location id={self.id} tenant_id={self.tenant_id} name={self.name}>"
