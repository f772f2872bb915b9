"""Serializer fields that respect writer ownership."""

from rest_framework import serializers


class WriterOwnedRelatedField(serializers.PrimaryKeyRelatedField):
    """Primary-key relation limited to rows the requesting writer owns.

    A foreign row (another writer's category, say) fails validation exactly
    like a missing one, so ids never leak across writers.
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return queryset.none()
        return queryset.filter(writer=user)


__all__ = ["WriterOwnedRelatedField"]
