"""Routing for categories, subcategories, and the dashboard."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import CategoryViewSet, DashboardView, SubcategoryViewSet

router = DefaultRouter()
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"subcategories", SubcategoryViewSet, basename="subcategory")

urlpatterns = [
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    path("", include(router.urls)),
]
