# stockledger/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # catalog
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    ITEM_VARIANT_NOT_FOUND = "ITEM_VARIANT_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    CATEGORY_CYCLE = "CATEGORY_CYCLE"

    # ledger
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    INVALID_INVENTORY_OPERATION = "INVALID_INVENTORY_OPERATION"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_TRANSACTION_TYPE = "INVALID_TRANSACTION_TYPE"
    TRANSFER_INVALID_LOCATION = "TRANSFER_INVALID_LOCATION"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    IMMUTABLE_TRANSACTION = "IMMUTABLE_TRANSACTION"
