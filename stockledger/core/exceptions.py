from decimal import Decimal

from fastapi import HTTPException
from stockledger.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    @property
    def message(self) -> str:
        return self.detail


class NotFoundError(AppException):
    """Id does not resolve, or resolves to another tenant's row.

    Both cases produce the same message so callers cannot discover
    other tenants' ids.
    """

    def __init__(self, resource: str, resource_id, error_code: ErrorCode = ErrorCode.NOT_FOUND):
        super().__init__(
            404,
            f"{resource} not found with id: {resource_id}",
            error_code,
            {"resource": resource, "id": str(resource_id)},
        )


class InsufficientInventoryError(AppException):
    def __init__(
        self,
        sku: str,
        location_name: str,
        available: Decimal,
        requested: Decimal,
    ):
        super().__init__(
            409,
            (
                f"Insufficient inventory for item {sku} at location {location_name}. "
                f"Available: {available}, Requested: {requested}"
            ),
            ErrorCode.INSUFFICIENT_INVENTORY,
            {
                "sku": sku,
                "location_name": location_name,
                "available": str(available),
                "requested": str(requested),
            },
        )
        self.sku = sku
        self.location_name = location_name
        self.available = available
        self.requested = requested


class InvalidOperationError(AppException):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            400,
            message,
            ErrorCode.INVALID_INVENTORY_OPERATION,
            details,
        )


class InventoryValidationError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR):
        super().__init__(400, message, error_code)


class ConcurrentModificationError(AppException):
    def __init__(self, attempts: int):
        super().__init__(
            409,
            "Concurrent inventory update detected, please retry",
            ErrorCode.CONCURRENT_MODIFICATION,
            {"attempts": attempts},
        )


class ImmutableTransactionError(AppException):
    def __init__(self, transaction_id):
        super().__init__(
            409,
            f"Inventory transaction {transaction_id} is immutable",
            ErrorCode.IMMUTABLE_TRANSACTION,
        )
