from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from stockledger.constants.inventory_transaction_type import InventoryTransactionType


class InventoryTransactionOut(BaseModel):
    id: int
    location_id: int
    location_name: str
    item_variant_id: int
    sku: str
    item_name: Optional[str]

    transaction_type: InventoryTransactionType
    quantity: Decimal
    reserved_quantity_change: Decimal
    reference_type: Optional[str]
    reference_id: Optional[str]
    notes: Optional[str]
    created_by_user_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryTransactionListData(BaseModel):
    total: int
    items: List[InventoryTransactionOut]


class StockTransferCreate(BaseModel):
    source_location_id: int
    destination_location_id: int
    item_variant_id: int
    quantity: Decimal = Field(gt=0)
    reference_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None
