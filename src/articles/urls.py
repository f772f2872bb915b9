"""Routing for articles, tags, and published reading."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import ArticleViewSet, PublishedArticleViewSet, TagViewSet

router = DefaultRouter()
router.include_root_view = False
router.register(r"articles", ArticleViewSet, basename="article")
router.register(r"tags", TagViewSet, basename="tag")
router.register(r"published", PublishedArticleViewSet, basename="published")

urlpatterns = [
    path("", include(router.urls)),
]
