import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Time every request and write one structured line per request.

    Adds the `X-Request-Duration-ms` and `X-Process-Time` headers and logs:
        [metrics] method:<METHOD> path:<PATH> user:<USER> status:<STATUS> duration_ms:<MS>

    DRF authenticates inside the view, so the user is read after the response
    is produced; requests rejected before authentication show as Anonymous.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start = time.perf_counter()
        response = self.get_response(request)
        duration_seconds = time.perf_counter() - start
        duration_ms = int(duration_seconds * 1000)

        response["X-Request-Duration-ms"] = str(duration_ms)
        response["X-Process-Time"] = f"{duration_seconds:.6f}"

        user = getattr(request, "user", None)
        username = user.username if user is not None and user.is_authenticated else "Anonymous"
        status = getattr(response, "status_code", "unknown")
        logger.info(
            "[metrics] method:%s path:%s user:%s status:%s duration_ms:%s",
            request.method,
            request.get_full_path(),
            username,
            status,
            duration_ms,
        )
        return response
