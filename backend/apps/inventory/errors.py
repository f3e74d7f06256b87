from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    INVALID_QUANTITY = "InvalidQuantity"
    MISSING_PACKAGING_RATIO = "MissingPackagingRatio"
    UNSUPPORTED_CONVERSION = "UnsupportedConversion"
    CONSISTENCY_VIOLATION = "ConsistencyViolation"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_TRANSFER = "InvalidTransfer"
    INVALID_MERGE = "InvalidMerge"


class InventoryError(Exception):
    """Base error raised by the conversion resolver, the ledger and reconciliation."""

    kind = ErrorKind.CONSISTENCY_VIOLATION

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class NotFound(InventoryError):
    kind = ErrorKind.NOT_FOUND


class InvalidQuantity(InventoryError):
    kind = ErrorKind.INVALID_QUANTITY


class MissingPackagingRatio(InventoryError):
    kind = ErrorKind.MISSING_PACKAGING_RATIO


class UnsupportedConversion(InventoryError):
    kind = ErrorKind.UNSUPPORTED_CONVERSION


class ConsistencyViolation(InventoryError):
    kind = ErrorKind.CONSISTENCY_VIOLATION


class InsufficientStock(InventoryError):
    kind = ErrorKind.INSUFFICIENT_STOCK


class InvalidTransfer(InventoryError):
    kind = ErrorKind.INVALID_TRANSFER


class InvalidMerge(InventoryError):
    kind = ErrorKind.INVALID_MERGE
