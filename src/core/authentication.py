"""Bridge between the JWT middleware and DRF's authentication hooks.

The bearer token is verified once in ``JWTAuthMiddleware``; DRF views only
need to see the user that middleware attached to the Django request.
"""

from typing import Any, Optional, Tuple

from django.contrib.auth.models import AnonymousUser
from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Expose ``request._request.user`` (set by middleware) to DRF.

    No credential parsing happens here. Anonymous or missing users skip
    authentication, which lets public endpoints (published articles) work
    without a token while protected ones raise ``NotAuthenticated``.
    """

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        if django_request is None:
            return None

        user = getattr(django_request, "user", None)
        if user is None or isinstance(user, AnonymousUser):
            return None

        if not getattr(user, "is_authenticated", False):
            return None

        return user, None

    def authenticate_header(self, request) -> str:
        return 'Bearer realm="api"'


__all__ = ["MiddlewareUserAuthentication"]
