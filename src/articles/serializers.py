"""Serializers for the article list, the editor, tags, and the public reader."""

from django.conf import settings
from rest_framework import serializers

from access_control.serializers import WriterOwnedRelatedField
from catalog.models import Category, Subcategory
from .models import Article, ArticleStatus, Tag
from .services import SaveReason, has_required_metadata
from .tags import DUPLICATE, add_tags


def _display_title(title: str) -> str:
    return title if title and title.strip() else "Untitled"


class ArticleListSerializer(serializers.ModelSerializer):
    title = serializers.SerializerMethodField()
    category_name = serializers.SerializerMethodField()
    subcategory_name = serializers.SerializerMethodField()

    class Meta:
        """Row shape for the writer's article table."""
        model = Article
        fields = [
            "id",
            "title",
            "status",
            "category_name",
            "subcategory_name",
            "created_at",
            "updated_at",
            "last_saved_at",
        ]

    def get_title(self, obj: Article) -> str:
        return _display_title(obj.title)

    def get_category_name(self, obj: Article) -> str | None:
        return obj.category.name if obj.category else None

    def get_subcategory_name(self, obj: Article) -> str | None:
        return obj.subcategory.name if obj.subcategory else None


class ArticleEditorSerializer(ArticleListSerializer):
    title = serializers.CharField(read_only=True)
    tags = serializers.SerializerMethodField()
    has_required_metadata = serializers.SerializerMethodField()
    autosave_interval = serializers.SerializerMethodField()

    class Meta:
        """Everything the editor needs to restore its state."""
        model = Article
        fields = [
            "id",
            "title",
            "body_md",
            "status",
            "category",
            "category_name",
            "subcategory",
            "subcategory_name",
            "tags",
            "has_required_metadata",
            "autosave_interval",
            "created_at",
            "updated_at",
            "last_saved_at",
            "published_at",
            "unpublished_at",
            "archived_at",
            "deleted_at",
        ]
        read_only_fields = fields

    def get_tags(self, obj: Article) -> list[str]:
        return obj.tag_names()

    def get_has_required_metadata(self, obj: Article) -> bool:
        return has_required_metadata(obj.category, obj.tag_names())

    def get_autosave_interval(self, obj: Article) -> int:
        return settings.AUTOSAVE_INTERVAL_SECONDS


def validate_tag_list(value: list[str]) -> list[str]:
    """Normalize a submitted tag list, rejecting malformed entries."""
    result = add_tags([], value)
    invalid = [item for item in result.rejected if item.reason != DUPLICATE]
    if invalid:
        raise serializers.ValidationError(
            [f'"{item.raw.strip()}" {item.label}' for item in invalid]
        )
    return result.tags


class ArticleSaveSerializer(serializers.Serializer):
    """Editor changes; omitted fields keep their stored values."""

    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    body_md = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    status = serializers.ChoiceField(choices=ArticleStatus.choices, required=False)
    category = WriterOwnedRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    subcategory = WriterOwnedRelatedField(
        queryset=Subcategory.objects.all(), required=False, allow_null=True
    )
    tags = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        required=False,
    )
    reason = serializers.ChoiceField(choices=SaveReason.choices, default=SaveReason.MANUAL)

    def validate_tags(self, value: list[str]) -> list[str]:
        return validate_tag_list(value)


class ArticleFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the article list."""

    q = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=ArticleStatus.choices, required=False)
    category = serializers.IntegerField(required=False, min_value=1)
    subcategory = serializers.IntegerField(required=False, min_value=1)
    tags = serializers.CharField(required=False, allow_blank=True)


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ["id", "name", "created_at"]
        read_only_fields = fields


class TagParseSerializer(serializers.Serializer):
    """Pasted text to merge into the editor's current tag list."""

    text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    tags = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        required=False,
        default=list,
    )


class PublishedArticleSerializer(serializers.ModelSerializer):
    title = serializers.SerializerMethodField()
    category_name = serializers.SerializerMethodField()
    tags = serializers.SerializerMethodField()

    class Meta:
        model = Article
        fields = ["id", "title", "body_md", "category_name", "tags", "published_at", "updated_at"]

    def get_title(self, obj: Article) -> str:
        return _display_title(obj.title)

    def get_category_name(self, obj: Article) -> str | None:
        return obj.category.name if obj.category else None

    def get_tags(self, obj: Article) -> list[str]:
        return obj.tag_names()


__all__ = [
    "ArticleListSerializer",
    "ArticleEditorSerializer",
    "ArticleSaveSerializer",
    "ArticleFilterSerializer",
    "TagSerializer",
    "TagParseSerializer",
    "PublishedArticleSerializer",
    "validate_tag_list",
]
