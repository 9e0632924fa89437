# stockledger/constants/inventory_transaction_type.py

from enum import Enum


class InventoryTransactionType(str, Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    RETURN = "RETURN"
    COUNT = "COUNT"


TRANSFER_REFERENCE_TYPE = "TRANSFER"
