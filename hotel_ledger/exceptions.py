import logging

from rest_framework import status
from rest_framework.exceptions import APIException, MethodNotAllowed, NotFound
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MissingBookingFields(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "roomId, guestName, checkIn, checkOut are required"
    default_code = "missing_fields"


class InvalidDates(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid dates"
    default_code = "invalid_dates"


class InvalidDateRange(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "checkOut must be after checkIn"
    default_code = "invalid_date_range"


class RoomNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Room not found"
    default_code = "room_not_found"


class RoomOccupied(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Room already occupied"
    default_code = "room_occupied"


ADMIN_ACCESS_REQUIRED = "Admin access required"


def _error_message(detail):
    if isinstance(detail, dict):
        # field errors from DRF parsers/serializers; report the first one
        for messages in detail.values():
            return _error_message(messages)
        return ""
    if isinstance(detail, list):
        return _error_message(detail[0]) if detail else ""
    return str(detail)


def ledger_exception_handler(exc, context):
    """Render every failure as ``{"error": message}``.

    Anything DRF does not recognise is an internal error: it is logged with
    its traceback and answered with the view's generic failure message.
    """
    if isinstance(exc, MethodNotAllowed):
        # a route is a method plus a path; other methods are unknown routes
        exc = NotFound("Not found")
    response = exception_handler(exc, context)
    if response is not None:
        data = response.data
        if isinstance(data, dict) and "detail" in data:
            data = data["detail"]
        response.data = {"error": _error_message(data)}
        return response

    view = context.get("view")
    message = getattr(view, "failure_message", "Internal server error")
    logger.exception("%s: %s", message, exc)
    return Response({"error": message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
