from sqlalchemy import Column, Integer, String, Text
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin, TenantMixin, StatusMixin


class Brand(Base, TimestampMixin, TenantMixin, StatusMixin):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Brand id={self.id} name={self.name}>"
