import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def server_error_response(message, exc=None):
    body = {"message": message}
    if settings.DEBUG and exc is not None:
        body["error"] = str(exc)
    return JsonResponse(body, status=500)


class JsonExceptionMiddleware:
    """Turn exceptions escaping a view into a JSON 500."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return server_error_response("Internal server error", exception)
