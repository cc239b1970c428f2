import time
import logging
import threading
from collections import Counter

from starlette.middleware.base import BaseHTTPMiddleware


class Metrics:
    """In-process request counters, exposed on the health endpoint."""

    def __init__(self):
        self._lock = threading.Lock()
        self.requests_total = Counter()
        self.errors_total = Counter()
        self.auth_denials_total = Counter()

    def record(self, client_id: str, denial=None, error_path=None) -> None:
        with self._lock:
            self.requests_total[client_id] += 1
            if denial:
                self.auth_denials_total[denial] += 1
            if error_path:
                self.errors_total[error_path] += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "requests_total": dict(self.requests_total),
                "errors_total": dict(self.errors_total),
                "auth_denials_total": dict(self.auth_denials_total),
            }


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, metrics: Metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        status = 500
        error_path = None
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            error_path = request.url.path
            logging.exception("[METRICS] path=%s error", request.url.path)
            raise
        finally:
            client_id = getattr(request.state, "client_id", "anonymous")
            denial = getattr(request.state, "auth_error_code", None)
            self.metrics.record(client_id, denial=denial, error_path=error_path)
            elapsed = (time.perf_counter() - start) * 1000
            logging.info(
                "[METRICS] path=%s client_id=%s status=%s denial=%s latency_ms=%.2f",
                request.url.path,
                client_id,
                status,
                denial or "-",
                elapsed,
            )
