"""System checks for access rule configuration."""

from django.core.checks import Error, register

from access_control.permissions import RBACPermission


@register()
def rbac_views_have_business_element(app_configs, **kwargs):
    """Ensure RBAC-protected viewsets declare a business_element attribute.

    The viewsets are listed explicitly; a new writer-owned resource must be
    added here.
    """
    errors: list[Error] = []

    # Import here to avoid circular imports at module load time.
    from articles.views import ArticleViewSet, TagViewSet
    from catalog.views import CategoryViewSet, DashboardView, SubcategoryViewSet

    rbac_views = [CategoryViewSet, SubcategoryViewSet, DashboardView, ArticleViewSet, TagViewSet]

    for view_cls in rbac_views:
        permission_classes = getattr(view_cls, "permission_classes", [])
        if RBACPermission in permission_classes:
            element = getattr(view_cls, "business_element", None)
            if not element:
                errors.append(
                    Error(
                        f"{view_cls.__name__} uses RBACPermission but does not "
                        f"define business_element.",
                        obj=view_cls,
                        id="access_control.E001",
                    )
                )

    return errors
