from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from stockledger.constants.inventory_transaction_type import InventoryTransactionType


class InventoryLevelOut(BaseModel):
    location_id: int
    location_name: str

    item_variant_id: int
    sku: str
    variant_name: Optional[str]
    item_name: Optional[str]

    quantity_on_hand: Decimal
    quantity_reserved: Decimal
    quantity_available: Decimal

    reorder_point: Optional[Decimal]
    reorder_quantity: Optional[Decimal]
    last_counted_at: Optional[datetime]
    low_stock: bool

    class Config:
        from_attributes = True


class InventoryLevelListData(BaseModel):
    total: int
    items: List[InventoryLevelOut]


# -------------------------
# REQUEST BODIES
# -------------------------
class QuantityChangeCreate(BaseModel):
    location_id: int
    item_variant_id: int
    quantity: Decimal
    transaction_type: InventoryTransactionType
    reference_type: Optional[str] = Field(None, max_length=50)
    reference_id: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class ReservationCreate(BaseModel):
    location_id: int
    item_variant_id: int
    quantity: Decimal = Field(gt=0)
    reference_type: Optional[str] = Field(None, max_length=50)
    reference_id: Optional[str] = Field(None, max_length=50)


class ReorderPolicyUpdate(BaseModel):
    location_id: int
    item_variant_id: int
    reorder_point: Decimal = Field(ge=0)
    reorder_quantity: Decimal = Field(ge=0)


class PosSaleCreate(BaseModel):
    location_id: int
    item_variant_id: int
    quantity: Decimal = Field(gt=0)
    order_id: Optional[str] = Field(None, max_length=50)
