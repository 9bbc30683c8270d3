"""Request-scoped middleware for the storefront API.

``RequestIdMiddleware`` gives every request a correlation id. The id comes
from the ``X-Request-Id`` header when the caller (load balancer, frontend)
sends one, and is generated otherwise. It is stored on the request and in
``REQUEST_ID_CTX`` so log records emitted anywhere during the request carry
it (see ``storefront.logging_filters``), and it is echoed back in the
``X-Request-ID`` response header.

``ApiSizeLimitMiddleware`` refuses oversized ``/api/`` bodies before any
view parses them.
"""

import contextvars
import uuid

from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")


class RequestIdMiddleware(MiddlewareMixin):
    HEADER = "HTTP_X_REQUEST_ID"       # as found in request.META
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._request_id_token = REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        response[self.RESPONSE_HEADER] = getattr(request, "request_id", REQUEST_ID_CTX.get())
        token = getattr(request, "_request_id_token", None)
        if token is not None:
            # gthread workers reuse threads; don't leak the id into the next request
            REQUEST_ID_CTX.reset(token)
            request._request_id_token = None
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    def process_request(self, request):
        if not request.path.startswith("/api/"):
            return None
        clen = request.META.get("CONTENT_LENGTH")
        if clen and clen.isdigit() and int(clen) > settings.API_MAX_BYTES:
            return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)
        return None
