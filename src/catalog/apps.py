"""App configuration for writer categories and subcategories."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Catalog app holds the category tree articles are filed under."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
