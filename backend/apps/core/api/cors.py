from django.conf import settings
from django.http import HttpResponse


ALLOWED_METHODS = ("GET", "POST", "PATCH", "DELETE", "OPTIONS")
ALLOWED_HEADERS = ("Content-Type", "X-API-Key", "X-Actor", "Idempotency-Key")
PREFLIGHT_MAX_AGE = 600


def allowed_origin(origin):
    """Echo ``origin`` back when it may call the API, else ``None``."""
    if not origin:
        return None
    allowlist = getattr(settings, "CORS_ALLOWED_ORIGINS", [])
    if settings.DEBUG or "*" in allowlist or origin in allowlist:
        return origin
    return None


class SimpleCORSMiddleware:
    """Answers preflight requests and tags API responses for the back-office frontend."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        origin = allowed_origin(request.headers.get("Origin"))
        preflight = request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers

        response = HttpResponse(status=204) if preflight else self.get_response(request)
        if origin is None:
            return response

        response["Access-Control-Allow-Origin"] = origin
        response["Vary"] = "Origin"
        if preflight:
            response["Access-Control-Allow-Methods"] = ", ".join(ALLOWED_METHODS)
            response["Access-Control-Allow-Headers"] = ", ".join(ALLOWED_HEADERS)
            response["Access-Control-Max-Age"] = str(PREFLIGHT_MAX_AGE)
        return response
