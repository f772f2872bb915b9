"""Serializers for category and subcategory forms."""

from rest_framework import serializers

from access_control.serializers import WriterOwnedRelatedField
from .models import CatalogStatus, Category, Subcategory


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=255, allow_blank=True)

    class Meta:
        """Writer and timestamps are managed server-side."""
        model = Category
        fields = ["id", "name", "description", "image_url", "status", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value


class SubcategorySerializer(serializers.ModelSerializer):
    category = WriterOwnedRelatedField(queryset=Category.objects.all())
    category_name = serializers.CharField(source="category.name", read_only=True)
    name = serializers.CharField(max_length=255, allow_blank=True)

    class Meta:
        """Expose the parent category id and its name from the join."""
        model = Subcategory
        fields = [
            "id",
            "category",
            "category_name",
            "name",
            "description",
            "image_url",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "category_name", "created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value


class SubcategoryFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the subcategory list."""

    q = serializers.CharField(required=False, allow_blank=True)
    category = serializers.IntegerField(required=False, min_value=1)


class StatusToggleSerializer(serializers.Serializer):
    """Target status for a quick toggle; omitted means flip the current one."""

    status = serializers.ChoiceField(choices=CatalogStatus.choices, required=False)


class ImageUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


__all__ = [
    "CategorySerializer",
    "SubcategorySerializer",
    "SubcategoryFilterSerializer",
    "StatusToggleSerializer",
    "ImageUploadSerializer",
]
