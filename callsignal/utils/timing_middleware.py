import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from ..core.log_config import logger

RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

class TimingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its status and latency and returns the latency
    to the caller. Liveness probes are polled constantly, so they only show
    up at debug level.
    """

    def __init__(self, app, quiet_paths=("/",)):
        super().__init__(app)
        self.quiet_paths = set(quiet_paths)

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.1f}"
        log = logger.debug if request.url.path in self.quiet_paths else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms:.1f} ms")
        return response
