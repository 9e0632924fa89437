from sqlalchemy import Column, Integer, String, Text, ForeignKey
from stockledger.core.db import Base
from stockledger.models.base.mixins import TimestampMixin, TenantMixin, StatusMixin


class Category(Base, TimestampMixin, TenantMixin, StatusMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True)

    def __repr__(self):
        return f"<Category id={self.id} name={self.name} parent_id={self.parent_id}>"
