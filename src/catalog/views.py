"""Category and subcategory admin endpoints plus the writer dashboard."""

import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser

from access_control.permissions import RBACPermission, WriterScopedMixin
from articles.models import Article, ArticleStatus
from core.response import BaseAPIView, BaseViewSet, api_response
from .models import Category, Subcategory
from .serializers import (
    CategorySerializer,
    ImageUploadSerializer,
    StatusToggleSerializer,
    SubcategoryFilterSerializer,
    SubcategorySerializer,
)
from .storage import CATEGORY_IMAGES, SUBCATEGORY_IMAGES, public_url, store_image

logger = logging.getLogger(__name__)


def _search(queryset, request, *fields: str):
    """Case-insensitive ``q`` match over the given fields."""
    term = (request.query_params.get("q") or "").strip()
    if not term:
        return queryset
    condition = Q()
    for field in fields:
        condition |= Q(**{f"{field}__icontains": term})
    return queryset.filter(condition)


class CatalogActionsMixin:
    """Status toggle and image upload shared by categories and subcategories."""

    image_bucket: str = ""

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        """Set or flip the active/inactive status.

        The previous status is returned so an optimistic client can roll
        back if it has already flipped its copy.
        """
        entry = self.get_object()  # type: ignore[attr-defined]
        serializer = StatusToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        previous = entry.status
        entry.status = serializer.validated_data.get("status") or entry.flipped(previous)
        entry.save(update_fields=["status", "updated_at"])
        logger.info(
            "%s %s status %s -> %s", type(entry).__name__, entry.pk, previous, entry.status
        )
        return api_response({"id": entry.pk, "status": entry.status, "previous_status": previous})

    @action(
        detail=False,
        methods=["post"],
        url_path="images",
        parser_classes=[MultiPartParser, FormParser],
    )
    def upload_image(self, request):
        """Upload an image into this resource's bucket and return its public URL."""
        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        key = store_image(self.image_bucket, serializer.validated_data["file"])
        return api_response(
            {"key": key, "image_url": public_url(request, key)},
            status=status.HTTP_201_CREATED,
        )


class CategoryViewSet(CatalogActionsMixin, WriterScopedMixin, BaseViewSet):
    """CRUD, status toggle, and image upload for the caller's categories."""

    serializer_class = CategorySerializer
    permission_classes = [RBACPermission]
    business_element = "category"
    image_bucket = CATEGORY_IMAGES
    queryset = Category.objects.all()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "list":
            queryset = _search(queryset, self.request, "name", "description")
        return queryset.order_by("-created_at", "-id")

    @action(detail=True, methods=["get"])
    def subcategories(self, request, pk=None):
        """The category view screen: its subcategories, optionally searched."""
        category = self.get_object()
        queryset = _search(category.subcategories.select_related("category"), request, "name", "description")
        data = SubcategorySerializer(
            queryset.order_by("-created_at", "-id"), many=True, context=self.get_serializer_context()
        ).data
        return api_response(data)


class SubcategoryViewSet(CatalogActionsMixin, WriterScopedMixin, BaseViewSet):
    """CRUD, status toggle, and image upload for the caller's subcategories."""

    serializer_class = SubcategorySerializer
    permission_classes = [RBACPermission]
    business_element = "subcategory"
    image_bucket = SUBCATEGORY_IMAGES
    queryset = Subcategory.objects.select_related("category")

    def get_queryset(self):
        return super().get_queryset().order_by("-created_at", "-id")

    def list(self, request, *args, **kwargs):
        """Search by ``q`` and narrow to one parent with ``category``."""
        params = SubcategoryFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        queryset = _search(self.get_queryset(), request, "name", "description", "category__name")
        category_id = params.validated_data.get("category")
        if category_id:
            queryset = queryset.filter(category_id=category_id)
        return api_response(self.get_serializer(queryset, many=True).data)


class DashboardView(BaseAPIView):
    """Writer landing page: how much the caller has filed so far."""

    permission_classes = [RBACPermission]
    business_element = "category"

    # noinspection PyMethodMayBeStatic
    def get(self, request):
        """Return the caller's category, subcategory, and article counts."""
        user = request.user
        return api_response(
            {
                "email": user.email,
                "categories": Category.objects.filter(writer=user).count(),
                "subcategories": Subcategory.objects.filter(writer=user).count(),
                "articles": Article.objects.filter(writer=user)
                .exclude(status=ArticleStatus.DELETED)
                .count(),
            }
        )


__all__ = ["CategoryViewSet", "SubcategoryViewSet", "DashboardView"]
