"""Article editor, tag, and published-reading endpoints."""

import logging

from django.conf import settings
from django.db.models import Q
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny

from access_control.permissions import RBACPermission, WriterScopedMixin
from core.response import BaseGenericViewSet, BaseViewSet, api_response, no_content
from .models import Article, ArticleStatus, ArticleTag, Tag
from .serializers import (
    ArticleEditorSerializer,
    ArticleFilterSerializer,
    ArticleListSerializer,
    ArticleSaveSerializer,
    PublishedArticleSerializer,
    TagParseSerializer,
    TagSerializer,
)
from .services import create_draft, save_article, soft_delete
from .tags import add_tags, split_tokens, unique_tags

logger = logging.getLogger(__name__)


class ArticleViewSet(WriterScopedMixin, BaseViewSet):
    """The writer's articles: filtered list, draft creation, and editor saves."""

    permission_classes = [RBACPermission]
    business_element = "article"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]
    queryset = Article.objects.select_related("category", "subcategory").prefetch_related(
        "article_tags__tag"
    )

    def get_serializer_class(self):
        if self.action == "list":
            return ArticleListSerializer
        if self.action == "partial_update":
            return ArticleSaveSerializer
        return ArticleEditorSerializer

    def filter_articles(self, queryset, params: dict):
        """Apply list filters. Deleted articles only show when asked for."""
        wanted_status = params.get("status")
        if wanted_status:
            queryset = queryset.filter(status=wanted_status)
        else:
            queryset = queryset.exclude(status=ArticleStatus.DELETED)

        if params.get("category"):
            queryset = queryset.filter(category_id=params["category"])
        if params.get("subcategory"):
            queryset = queryset.filter(subcategory_id=params["subcategory"])

        term = (params.get("q") or "").strip()
        if term:
            queryset = queryset.filter(Q(title__icontains=term) | Q(body_md__icontains=term))

        raw_tags = (params.get("tags") or "").strip()
        if raw_tags:
            names = unique_tags(split_tokens(raw_tags))
            if not names:
                return queryset.none()
            condition = Q()
            for name in names:
                condition |= Q(tag__name__iexact=name)
            tagged = ArticleTag.objects.filter(
                condition, tag__writer=self.request.user
            ).values("article_id")
            queryset = queryset.filter(id__in=tagged)

        return queryset

    def list(self, request, *args, **kwargs):
        params = ArticleFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        queryset = self.filter_articles(self.get_queryset(), params.validated_data)
        queryset = queryset.order_by("-updated_at", "-id")[: settings.ARTICLE_LIST_LIMIT]
        return api_response(ArticleListSerializer(queryset, many=True).data)

    def create(self, request, *args, **kwargs):
        """Create an empty draft and hand back the editor state."""
        article = create_draft(request.user)
        article = self.get_queryset().get(pk=article.pk)
        return api_response(ArticleEditorSerializer(article).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        """Save editor changes; ``reason`` says which control triggered it."""
        article = self.get_object()
        serializer = ArticleSaveSerializer(data=request.data, context=self.get_serializer_context())
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        reason = changes.pop("reason")

        outcome = save_article(article, changes, reason)
        fresh = self.get_queryset().get(pk=outcome.article.pk)
        return api_response(
            {
                "article": ArticleEditorSerializer(fresh).data,
                "saved": outcome.saved,
                "message": outcome.message,
            }
        )

    def destroy(self, request, *args, **kwargs):
        """Soft delete: the article moves to ``deleted`` and stays stored."""
        article = soft_delete(self.get_object())
        logger.info("Article %s moved to deleted by %s", article.pk, request.user.pk)
        return no_content()


class TagViewSet(WriterScopedMixin, mixins.ListModelMixin, BaseGenericViewSet):
    """The caller's tags, plus parsing of pasted tag lists."""

    serializer_class = TagSerializer
    permission_classes = [RBACPermission]
    business_element = "tag"
    queryset = Tag.objects.all()

    def get_queryset(self):
        queryset = super().get_queryset()
        term = (self.request.query_params.get("q") or "").strip()
        if term:
            queryset = queryset.filter(name__icontains=term)
        return queryset.order_by("name")

    @action(detail=False, methods=["post"])
    def parse(self, request):
        """Merge pasted text into a tag list and report what was rejected."""
        serializer = TagParseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        existing = unique_tags(serializer.validated_data["tags"])
        result = add_tags(existing, split_tokens(serializer.validated_data["text"]))
        return api_response(result.as_dict())


class PublishedArticleViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, BaseGenericViewSet):
    """Public reading: published articles only, for anyone."""

    serializer_class = PublishedArticleSerializer
    permission_classes = [AllowAny]
    queryset = (
        Article.objects.filter(status=ArticleStatus.PUBLISHED)
        .select_related("category")
        .prefetch_related("article_tags__tag")
    )

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "list":
            term = (self.request.query_params.get("q") or "").strip()
            if term:
                queryset = queryset.filter(Q(title__icontains=term) | Q(body_md__icontains=term))
            queryset = queryset.order_by("-published_at", "-id")[: settings.ARTICLE_LIST_LIMIT]
        return queryset

    def get_object(self):
        try:
            return self.get_queryset().get(pk=self.kwargs["pk"])
        except (Article.DoesNotExist, ValueError):
            raise NotFound("This article doesn't exist or isn't published.")


__all__ = ["ArticleViewSet", "TagViewSet", "PublishedArticleViewSet"]
