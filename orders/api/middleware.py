"""
Error handling for the HTTP and GraphQL layers.
"""
import logging

from ariadne import format_error
from django.db import DatabaseError
from django.http import JsonResponse
from graphql import GraphQLError

from orders.domain.errors import OrderError, ValidationError

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Error handler for API responses."""

    ERROR_CODES = {
        "VALIDATION_ERROR": 400,
        "INVALID_JSON": 400,
        "INVALID_STATE": 400,
        "FORBIDDEN": 403,
        "NOT_FOUND": 404,
        "CONFLICT": 409,
        "DUPLICATE_REQUEST": 409,
        "INTERNAL_ERROR": 500,
        "DEPENDENCY_ERROR": 503,
    }

    @classmethod
    def error_code(cls, error: BaseException | None) -> str:
        if isinstance(error, OrderError):
            return error.code
        if isinstance(error, DatabaseError):
            return "DEPENDENCY_ERROR"
        return "INTERNAL_ERROR"

    @classmethod
    def response(cls, code: str, message: str) -> JsonResponse:
        return JsonResponse(
            {
                "error": {
                    "code": code,
                    "message": message,
                }
            },
            status=cls.ERROR_CODES.get(code, 500),
        )

    @classmethod
    def handle_error(cls, error: Exception) -> JsonResponse:
        """Handle error and return JSON response."""
        code = cls.error_code(error)
        if isinstance(error, OrderError):
            return cls.response(code, error.message)

        logger.error(
            "unexpected_error",
            extra={
                "error_code": code,
                "error": f"{type(error).__name__}: {error}",
            },
            exc_info=True,
        )
        if code == "DEPENDENCY_ERROR":
            return cls.response(code, "A dependency is unavailable")
        return cls.response(code, "An internal error occurred")


def root_error(error: GraphQLError) -> BaseException | None:
    """Innermost non-GraphQL cause of ``error``; None when it has none."""
    cause = error.original_error
    while isinstance(cause, GraphQLError):
        cause = cause.original_error
    return cause


def format_graphql_error(error: GraphQLError, debug: bool = False) -> dict:
    """Ariadne error formatter adding a stable ``extensions.code``."""
    formatted = format_error(error, debug)
    original = root_error(error)

    if original is None:
        # Query parsing/validation failures and unknown enum values.
        code = "VALIDATION_ERROR"
    elif not error.path and isinstance(original, (ValueError, TypeError, ValidationError)):
        # Scalar coercion failures raised while reading variables.
        code = "VALIDATION_ERROR"
    else:
        code = ErrorHandler.error_code(original)

    if code in ("INTERNAL_ERROR", "DEPENDENCY_ERROR"):
        logger.error(
            "graphql_resolver_error",
            extra={"error_code": code, "error": str(error)},
            exc_info=(type(original), original, original.__traceback__),
        )
        if not debug:
            formatted["message"] = "A dependency is unavailable" if code == "DEPENDENCY_ERROR" else "An internal error occurred"

    extensions = dict(formatted.get("extensions") or {})
    extensions["code"] = code
    formatted["extensions"] = extensions
    return formatted
