"""Response helpers and base classes for the `{data, errors}` envelope."""

from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet, ModelViewSet


def api_response(data: Any, status: int = 200) -> Response:
    """Return data wrapped in the standard envelope."""

    return Response({"data": data, "errors": []}, status=status)


def no_content() -> Response:
    """Return an empty 204; these responses must not carry a body."""

    return Response(status=http_status.HTTP_204_NO_CONTENT)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and "errors" in payload


class EnvelopeMixin:
    """Mixin to wrap successful responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        """Ensure non-error responses include the `{data, errors}` envelope."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                response.data = {"data": response.data, "errors": []}
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView that ensures successful responses use the standard envelope."""


class BaseGenericViewSet(EnvelopeMixin, GenericViewSet):
    """GenericViewSet for read-only or action-only resources."""


class BaseViewSet(EnvelopeMixin, ModelViewSet):
    """ModelViewSet variant that wraps successful responses in the envelope."""
