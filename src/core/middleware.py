"""Middleware for request logging and JWT authentication with a Redis blocklist."""

import logging
import time
from typing import Optional

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import (
    ACCESS,
    BlocklistUnavailable,
    TokenBlocklist,
    TokenService,
    bearer_token,
)

access_logger = logging.getLogger("writersphere.access")


class RequestLoggingMiddleware(MiddlewareMixin):
    """Log method, path, status and duration for every request.

    Request bodies and Authorization headers are never logged.
    """

    def process_request(self, request):  # type: ignore[override]
        request._started_at = time.perf_counter()
        return None

    def process_response(self, request, response):  # type: ignore[override]
        started = getattr(request, "_started_at", None)
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0

        status_code = response.status_code
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        user = getattr(request, "user", None)
        user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else "-"
        access_logger.log(
            level,
            "%s %s %d %.1fms user=%s",
            request.method,
            request.path,
            status_code,
            duration_ms,
            user_id,
        )
        return response


class JWTAuthMiddleware(MiddlewareMixin):
    """Decode access JWT, check blocklist and token version, attach request.user."""

    def process_request(self, request):  # type: ignore[override]
        """Authenticate request using Bearer access token if present."""
        token = bearer_token(request)
        if not token:
            request.user = AnonymousUser()
            return None

        try:
            payload = TokenService.decode_token(token, expected_type=ACCESS)
            jti = payload.get("jti")
            if not jti:
                return _unauthorized()

            if TokenBlocklist.contains(jti):
                return _unauthorized()

            user = self._get_user(payload.get("sub"))
            if not user or not user.is_active:
                return _unauthorized()

            if not TokenService.is_current(payload, user):
                return _unauthorized()

            request.user = user
            return None

        except AuthenticationFailed:
            return _unauthorized()
        except BlocklistUnavailable:
            return _service_unavailable()

    @staticmethod
    def _get_user(user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        try:
            return User.objects.select_related("role").get(id=user_id)
        except (User.DoesNotExist, ValidationError):
            return None


def _unauthorized() -> JsonResponse:
    return JsonResponse(
        {
            "data": None,
            "errors": [
                "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
            ],
        },
        status=status.HTTP_401_UNAUTHORIZED,
    )


def _service_unavailable() -> JsonResponse:
    return JsonResponse(
        {"data": None, "errors": ["Authentication service unavailable (blocklist)."]},
        status=status.HTTP_503_SERVICE_UNAVAILABLE,
    )


__all__ = ["JWTAuthMiddleware", "RequestLoggingMiddleware"]
