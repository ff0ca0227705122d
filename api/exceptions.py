"""
Custom Exception Handler for API
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError
import logging

from apps.core.exceptions import AuthenticationRequired, StorefrontException

logger = logging.getLogger(__name__)


def _first_message(detail):
    """Pull the first human-readable message out of DRF's nested error detail."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            if message:
                return message if field == 'non_field_errors' else f"{field}: {message}"
        return None
    if isinstance(detail, list):
        for value in detail:
            message = _first_message(value)
            if message:
                return message
        return None
    return str(detail)


def _storefront_response(exc: StorefrontException) -> Response:
    details = {"code": exc.code}
    if getattr(exc, 'field', None):
        details["field"] = exc.field
    if getattr(exc, 'step', None):
        details["step"] = exc.step

    data = {
        "error": True,
        "message": exc.message,
        "details": details,
        "status_code": exc.status_code,
    }
    if isinstance(exc, AuthenticationRequired) and exc.login_url:
        data["login_url"] = exc.login_url

    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    else:
        logger.warning(f"{exc.code}: {exc.message}")
    return Response(data, status=exc.status_code)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that provides consistent error responses.
    """
    if isinstance(exc, StorefrontException):
        return _storefront_response(exc)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ValidationError):
            message = _first_message(exc.detail) or "Invalid request"
        else:
            message = str(exc)
        # Customize the response format
        response.data = {
            "error": True,
            "message": message,
            "details": response.data if isinstance(response.data, dict) else {"detail": response.data},
            "status_code": response.status_code
        }
    else:
        # Handle unexpected exceptions
        logger.exception(f"Unhandled exception: {exc}")
        response = Response(
            {
                "error": True,
                "message": "An unexpected error occurred",
                "details": {},
                "status_code": 500
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
