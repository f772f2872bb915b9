"""App configuration for articles and tags."""

from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    """Articles app holds the editor, the article list, and public reading."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "articles"
