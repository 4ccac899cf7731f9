from django.conf import settings
from django.utils.crypto import constant_time_compare
from rest_framework import permissions

from .exceptions import ADMIN_ACCESS_REQUIRED

ADMIN_KEY_HEADER = "HTTP_X_ADMIN_KEY"
ADMIN_KEY_PARAM = "adminKey"


def is_privileged(request, admin_key=None):
    """Return True if the request carries the configured admin key."""
    expected = settings.ADMIN_KEY if admin_key is None else admin_key
    if not expected:
        return False
    # DRF requests expose query_params; plain Django requests only GET
    params = getattr(request, "query_params", request.GET)
    for supplied in (request.META.get(ADMIN_KEY_HEADER), params.get(ADMIN_KEY_PARAM)):
        if supplied and constant_time_compare(supplied, expected):
            return True
    return False


class HasAdminKey(permissions.BasePermission):
    """Only allow callers that present the admin key."""

    message = ADMIN_ACCESS_REQUIRED

    def has_permission(self, request, view):
        return is_privileged(request)


class AdminKeyForSafeMethods(HasAdminKey):
    """Reads need the admin key; writes are open to everyone."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return super().has_permission(request, view)
        return True
