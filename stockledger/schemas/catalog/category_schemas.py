from pydantic import BaseModel
from typing import Optional

from stockledger.models.enums.entity_status import EntityStatus


class CategoryParentUpdate(BaseModel):
    parent_id: Optional[int] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    parent_id: Optional[int]
    status: EntityStatus

    class Config:
        from_attributes = True
