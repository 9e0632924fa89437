from sqlalchemy import Column, Integer, DateTime, Enum
from sqlalchemy.sql import func

from stockledger.models.enums.entity_status import EntityStatus


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=func.now()
    )


class TenantMixin:
    tenant_id = Column(Integer, nullable=False, index=True)


class StatusMixin:
    status = Column(
        Enum(EntityStatus, native_enum=False, length=20),
        nullable=False,
        default=EntityStatus.ACTIVE,
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == EntityStatus.DELETED
