"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError, DataError, IntegrityError, InterfaceError, OperationalError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from articles.services import SaveGuardUnavailable
from authentication.services import BlocklistUnavailable

logger = logging.getLogger(__name__)

NON_FIELD_KEYS = ("non_field_errors", "detail")


def _normalize_errors(payload: Any, field: str | None = None) -> list[str]:
    """Flatten DRF's response.data into a list of display strings.

    Field errors are prefixed with the field name so the client can show the
    message verbatim; ``detail`` and ``non_field_errors`` are left bare.
    """

    if isinstance(payload, list):
        errors: list[str] = []
        for item in payload:
            errors.extend(_normalize_errors(item, field))
        return errors
    if isinstance(payload, dict):
        errors = []
        for key, value in payload.items():
            if key in NON_FIELD_KEYS:
                errors.extend(_normalize_errors(value, field))
            elif isinstance(key, int):
                # ListField errors are keyed by item index.
                errors.extend(_normalize_errors(value, field))
            else:
                errors.extend(_normalize_errors(value, key))
        return errors
    message = str(payload)
    return [f"{field}: {message}" if field else message]


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF errors in `{ "data": null, "errors": [...] }` shape.

    - Uses DRF's default handler to produce the base response.
    - Normalizes auth/permission messages to fixed strings.
    - Optionally exposes more detailed auth errors when DEBUG_AUTH_ERRORS is enabled.
    """

    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "-"

    # Redis outages on security or save-guard paths fail closed with 503.
    if isinstance(exc, BlocklistUnavailable):
        logger.error("Blocklist unavailable in %s: %s", view_name, exc)
        return Response(
            {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, SaveGuardUnavailable):
        logger.error("Save guard unavailable in %s: %s", view_name, exc)
        return Response(
            {"data": None, "errors": ["Save service temporarily unavailable."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    # Lost connections are an outage; anything else the database rejected is
    # shown with its own message.
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.exception("Database unavailable in %s", view_name)
        return Response(
            {"data": None, "errors": ["Service temporarily unavailable."]},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if isinstance(exc, DatabaseError):
        logger.exception("Database error in %s", view_name)
        rejected = isinstance(exc, (IntegrityError, DataError))
        return Response(
            {"data": None, "errors": [str(exc) or "Database error."]},
            status=status.HTTP_400_BAD_REQUEST if rejected else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled error in %s", view_name, exc_info=exc)
        return response

    # AuthenticationFailed/NotAuthenticated always produce 401, regardless of
    # whether the authenticator advertises a WWW-Authenticate header.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code >= 400:
        base_errors = response.data

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            if getattr(settings, "DEBUG_AUTH_ERRORS", False):
                errors = _normalize_errors(base_errors)
            else:
                errors = [
                    "Authentication credentials were not provided or are invalid, "
                    "token revoked, or user is inactive."
                ]
        elif response.status_code == status.HTTP_403_FORBIDDEN:
            errors = [
                "You do not have permission to perform this action on this resource."
            ]
        else:
            errors = _normalize_errors(base_errors)

        logger.info(
            "%s responded %s: %s", view_name, response.status_code, "; ".join(map(str, errors))
        )
        response.data = {"data": None, "errors": errors}

    return response
