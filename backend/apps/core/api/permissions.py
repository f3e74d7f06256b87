from django.conf import settings
from rest_framework.permissions import SAFE_METHODS, BasePermission


class HasValidApiKey(BasePermission):
    message = "A valid X-API-Key header is required."

    def has_permission(self, request, view):
        if request.method == "OPTIONS":
            return True
        if not request.auth:
            return False
        if request.method in SAFE_METHODS:
            return True
        read_only_keys = set(getattr(settings, "INVENTORY_READONLY_API_KEYS", []))
        if request.auth in read_only_keys:
            self.message = "This API key is read-only."
            return False
        return True
