"""Category and Subcategory models owned by a writer."""

from django.conf import settings
from django.db import models


class CatalogStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class CatalogEntry(models.Model):
    """Fields shared by categories and subcategories."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    image_url = models.URLField(max_length=1024, blank=True, default="")
    status = models.CharField(
        max_length=16, choices=CatalogStatus.choices, default=CatalogStatus.ACTIVE
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @staticmethod
    def flipped(status: str) -> str:
        if status == CatalogStatus.ACTIVE:
            return CatalogStatus.INACTIVE
        return CatalogStatus.ACTIVE


class Category(CatalogEntry):
    """Top-level grouping a writer files articles under."""

    writer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="categories"
    )

    class Meta(CatalogEntry.Meta):
        verbose_name_plural = "categories"


class Subcategory(CatalogEntry):
    """Optional second level below a category."""

    writer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="subcategories"
    )
    category = models.ForeignKey(
        Category, on_delete=models.CASCADE, related_name="subcategories"
    )

    class Meta(CatalogEntry.Meta):
        verbose_name_plural = "subcategories"


__all__ = ["CatalogStatus", "Category", "Subcategory"]
