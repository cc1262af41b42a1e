import time
from functools import wraps

from clinic_core.adapters.observability.metrics import HTTP_REQUEST_COUNT, HTTP_REQUEST_LATENCY


def track_http(view_name):
    """
    Mede latência e contagem de uma action de view DRF.
    Exceções também são contabilizadas (status "error") e propagadas.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(self, request, *args, **kwargs):
            start = time.perf_counter()
            status = "error"
            try:
                resp = fn(self, request, *args, **kwargs)
                status = str(getattr(resp, "status_code", 200))
                return resp
            finally:
                labels = {"method": request.method, "view": view_name, "status": status}
                HTTP_REQUEST_LATENCY.labels(**labels).observe(time.perf_counter() - start)
                HTTP_REQUEST_COUNT.labels(**labels).inc()
        return wrapper
    return decorator
