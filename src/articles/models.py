"""Article, Tag, and ArticleTag models."""

from django.conf import settings
from django.db import models
from django.db.models.functions import Lower


class ArticleStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    UNPUBLISHED = "unpublished", "Unpublished"
    ARCHIVED = "archived", "Archived"
    DELETED = "deleted", "Deleted"


# Statuses that require a category and the minimum number of tags.
METADATA_STATUSES = frozenset(
    {ArticleStatus.PUBLISHED, ArticleStatus.UNPUBLISHED, ArticleStatus.ARCHIVED}
)

# Status -> timestamp field stamped when an article enters that status.
STATUS_TIMESTAMPS = {
    ArticleStatus.PUBLISHED: "published_at",
    ArticleStatus.UNPUBLISHED: "unpublished_at",
    ArticleStatus.ARCHIVED: "archived_at",
    ArticleStatus.DELETED: "deleted_at",
}


class Tag(models.Model):
    """A writer's tag; names are unique per writer regardless of case."""

    writer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tags")
    name = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("name"), "writer", name="unique_tag_name_per_writer"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class Article(models.Model):
    """Markdown article with a lifecycle status and its own timestamps."""

    writer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="articles")
    title = models.CharField(max_length=255, blank=True, default="Untitled")
    body_md = models.TextField(blank=True, default="")
    status = models.CharField(max_length=16, choices=ArticleStatus.choices, default=ArticleStatus.DRAFT)
    category = models.ForeignKey(
        "catalog.Category", on_delete=models.SET_NULL, null=True, blank=True, related_name="articles"
    )
    subcategory = models.ForeignKey(
        "catalog.Subcategory", on_delete=models.SET_NULL, null=True, blank=True, related_name="articles"
    )
    tags = models.ManyToManyField(Tag, through="ArticleTag", related_name="articles", blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_saved_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)
    unpublished_at = models.DateTimeField(null=True, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.title or "Untitled"

    def tag_names(self) -> list[str]:
        """Tag names in the order they were attached."""
        links = sorted(self.article_tags.all(), key=lambda link: link.pk)
        return [link.tag.name for link in links]


class ArticleTag(models.Model):
    """Join row attaching a tag to an article."""

    article = models.ForeignKey(Article, on_delete=models.CASCADE, related_name="article_tags")
    tag = models.ForeignKey(Tag, on_delete=models.CASCADE, related_name="article_tags")

    class Meta:
        unique_together = ("article", "tag")


__all__ = ["ArticleStatus", "Article", "Tag", "ArticleTag", "METADATA_STATUSES", "STATUS_TIMESTAMPS"]
