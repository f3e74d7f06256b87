import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.inventory.errors import ErrorKind, InventoryError


logger = logging.getLogger(__name__)

INVENTORY_ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISSING_PACKAGING_RATIO: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.UNSUPPORTED_CONVERSION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.CONSISTENCY_VIOLATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSFER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_MERGE: status.HTTP_400_BAD_REQUEST,
}


def inventory_error_status(exc: InventoryError) -> int:
    return INVENTORY_ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)


def inventory_error_response(exc: InventoryError) -> Response:
    status_code = inventory_error_status(exc)
    if exc.kind == ErrorKind.CONSISTENCY_VIOLATION:
        logger.error("Ledger consistency violation: %s %s", exc.message, exc.context)
    return Response(
        {
            "code": exc.kind.value,
            "detail": exc.message,
            "field_errors": {},
        },
        status=status_code,
    )


def ceramica_exception_handler(exc, context):
    if isinstance(exc, InventoryError):
        return inventory_error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            "code": "validation_error",
            "detail": "Request validation failed.",
            "field_errors": response.data,
        }
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    code = getattr(exc, "default_code", "api_error")

    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        code = "internal_error"
    elif response.status_code == status.HTTP_401_UNAUTHORIZED:
        code = "authentication_failed"
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        code = "permission_denied"
    elif response.status_code == status.HTTP_404_NOT_FOUND:
        code = "not_found"

    response.data = {
        "code": code,
        "detail": str(detail),
        "field_errors": {},
    }
    return response
