from __future__ import annotations

from time import perf_counter
from uuid import uuid4

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from emergency_service.config import SERVICE_NAME
from emergency_service.observability import MetricsCollector, RequestMetric, set_trace_id

UNMATCHED_ROUTE = "unmatched"


def _route_template(request: Request) -> str:
    # Matched route template, never the raw URL.
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, collector: MetricsCollector) -> None:
        super().__init__(app)
        self._collector = collector
        self._tracer = trace.get_tracer(SERVICE_NAME)

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = request.headers.get("x-trace-id") or str(uuid4())
        set_trace_id(trace_id)
        started = perf_counter()
        status_code = 500
        with self._tracer.start_as_current_span("http.request") as span:
            span.set_attribute("http.method", request.method)
            span.set_attribute("trace.id", trace_id)
            try:
                response = await call_next(request)
                status_code = response.status_code
            finally:
                route = _route_template(request)
                span.set_attribute("http.route", route)
                span.set_attribute("http.status_code", status_code)
                self._collector.observe(
                    RequestMetric(
                        method=request.method,
                        path=route,
                        status_code=status_code,
                        duration_ms=(perf_counter() - started) * 1000.0,
                        trace_id=trace_id,
                    )
                )

        response.headers["x-trace-id"] = trace_id
        return response
