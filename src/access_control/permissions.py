"""Access rule permission class and writer-scoped queryset mixin."""

import logging

from django.conf import settings
from rest_framework import permissions

from .models import AccessRule

logger = logging.getLogger(__name__)


def get_access_rule(user, element_key: str) -> AccessRule | None:
    """Fetch the AccessRule for the user's role and a business element.

    Uses getattr so the generic AbstractBaseUser type does not need to
    declare the concrete ``role`` FK.
    """
    role = getattr(user, "role", None)
    if role is None:
        return None
    try:
        return AccessRule.objects.select_related("role", "element").get(
            role=role, element__key=element_key
        )
    except AccessRule.DoesNotExist:
        return None


class RBACPermission(permissions.BasePermission):
    """Check access based on AccessRule for the view's business_element.

    Rows are owned through their ``writer`` field. If
    ``settings.ALLOW_SUPERUSER_BYPASS`` is True, Django superusers skip the
    checks entirely.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        if self._has_superuser_bypass(request):
            return True

        element_key = getattr(view, "business_element", None)
        if not element_key:
            return False

        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        rule = get_access_rule(user, element_key)
        if not rule:
            logger.info("No %s rule for role of user %s", element_key, user.pk)
            return False

        if request.method in permissions.SAFE_METHODS:
            return rule.can_read_all or rule.can_read_own
        if request.method == "POST":
            # Detail-level POST actions (status toggles) are updates.
            if getattr(view, "detail", False):
                return rule.can_update_all or rule.can_update_own
            return rule.can_create
        if request.method in ("PUT", "PATCH"):
            return rule.can_update_all or rule.can_update_own
        if request.method == "DELETE":
            return rule.can_delete_all or rule.can_delete_own
        return False

    def has_object_permission(self, request, view, obj) -> bool:
        if self._has_superuser_bypass(request):
            return True

        user = getattr(request, "user", None)
        element_key = getattr(view, "business_element", None)
        if not element_key:
            return False

        rule = get_access_rule(user, element_key)
        if not rule:
            return False

        if request.method in permissions.SAFE_METHODS:
            return rule.can_read_all or (rule.can_read_own and self._is_owner(obj, request))
        if request.method in ("PUT", "PATCH", "POST"):
            return rule.can_update_all or (rule.can_update_own and self._is_owner(obj, request))
        if request.method == "DELETE":
            return rule.can_delete_all or (rule.can_delete_own and self._is_owner(obj, request))
        return False

    @staticmethod
    def _is_owner(obj, request) -> bool:
        writer_id = getattr(obj, "writer_id", None)
        return bool(writer_id and writer_id == getattr(request.user, "pk", None))

    @staticmethod
    def _has_superuser_bypass(request) -> bool:
        """Return True if superuser bypass is enabled and the user is a superuser."""

        user = getattr(request, "user", None)
        return (
                user is not None
                and getattr(user, "is_authenticated", False)
                and getattr(settings, "ALLOW_SUPERUSER_BYPASS", False)
                and getattr(user, "is_superuser", False)
        )


class WriterScopedMixin:
    """Scope a viewset's rows to the caller, the way row-level security would.

    Subclasses set ``business_element`` and ``queryset``. With ``can_read_all``
    every row is visible; with only ``can_read_own`` the caller sees rows whose
    ``writer`` is the caller, so other writers' rows resolve to 404.
    """

    business_element: str = ""

    def scoped_queryset(self, queryset):
        user = self.request.user  # type: ignore[attr-defined]
        if not getattr(user, "is_authenticated", False):
            return queryset.none()
        if RBACPermission._has_superuser_bypass(self.request):  # type: ignore[attr-defined]
            return queryset

        rule = get_access_rule(user, self.business_element)
        if not rule:
            return queryset.none()
        if rule.can_read_all:
            return queryset
        if rule.can_read_own:
            return queryset.filter(writer=user)
        return queryset.none()

    def get_queryset(self):
        return self.scoped_queryset(super().get_queryset())  # type: ignore[misc]

    def perform_create(self, serializer):
        """Attach the current user as writer on create."""
        serializer.save(writer=self.request.user)  # type: ignore[attr-defined]


__all__ = ["RBACPermission", "WriterScopedMixin", "get_access_rule"]
