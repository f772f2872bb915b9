"""Session endpoints: sign-up, sign-in, refresh, sign-out, and profile."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db.models import F
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from core.response import BaseAPIView, api_response, no_content
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
)
from .services import REFRESH, TokenService, bearer_token

User = get_user_model()

logger = logging.getLogger(__name__)


def _session_payload(user) -> dict[str, Any]:
    """Profile plus a fresh token pair; sign-up and sign-in both return this."""
    access, refresh = TokenService.generate_tokens(user)
    return {
        "user": UserDetailSerializer(user).data,
        "access": access,
        "refresh": refresh,
    }


def _require_user(request):
    if not request.user.is_authenticated:
        raise AuthenticationFailed("Authentication required")
    return request.user


class PublicAPIView(BaseAPIView):
    """Endpoints reachable without a session; token checks happen in the view."""

    permission_classes: list[Any] = []


class RegisterView(PublicAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Create a writer or reader account and start a session."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered %s as %s", user.pk, user.role.name)
        return api_response(_session_payload(user), status=status.HTTP_201_CREATED)


class LoginView(PublicAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Check credentials and start a session."""
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        logger.info("Signed in %s", user.pk)
        return api_response(_session_payload(user))


class RefreshView(PublicAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Trade a refresh token for a new pair."""
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            raise AuthenticationFailed("Refresh token required")

        payload = TokenService.decode_token(refresh_token, expected_type=REFRESH)
        user = _get_active_user(payload.get("sub"))
        if not user:
            raise AuthenticationFailed("User not found or inactive")
        if not TokenService.is_current(payload, user):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        access, new_refresh = TokenService.generate_tokens(user)
        return api_response({"access": access, "refresh": new_refresh})


class LogoutView(PublicAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Sign out this device: the bearer token stops working at once."""
        token = bearer_token(request)
        if not token:
            raise AuthenticationFailed("Missing token.")
        payload = TokenService.revoke(token)
        logger.info("Signed out %s", payload.get("sub"))
        return no_content()


class LogoutAllView(PublicAPIView):
    # noinspection PyMethodMayBeStatic
    def post(self, request):
        """Sign out everywhere by bumping ``token_version``."""
        user = _require_user(request)
        User.objects.filter(pk=user.pk).update(token_version=F("token_version") + 1)
        token = bearer_token(request)
        if token:
            TokenService.revoke(token)
        logger.info("Signed out %s on all devices", user.pk)
        return no_content()


class MeView(PublicAPIView):
    """The current session: profile lookup, name edits, and account removal."""

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        return api_response(UserDetailSerializer(_require_user(request)).data)

    # noinspection PyMethodMayBeStatic
    def patch(self, request):
        user = _require_user(request)
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(UserDetailSerializer(user).data)

    # noinspection PyMethodMayBeStatic
    def delete(self, request):
        """Soft delete: the account is deactivated and this token revoked."""
        user = _require_user(request)
        token = bearer_token(request)
        if token:
            TokenService.revoke(token)
        user.is_active = False
        user.save(update_fields=["is_active"])
        logger.info("Deactivated %s", user.pk)
        return no_content()


def _get_active_user(user_id) -> User | None:
    """Retrieve an active user by id, or None if missing/inactive."""
    if not user_id:
        return None
    try:
        user = User.objects.select_related("role").get(id=user_id)
    except (User.DoesNotExist, ValidationError):
        return None
    return user if user.is_active else None
