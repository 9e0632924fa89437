import enum


class EntityStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DELETED = "DELETED"       # soft delete, hidden from lookups
    DEPRECATED = "DEPRECATED"
