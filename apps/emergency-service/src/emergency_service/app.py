from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from devkit.observability import configure_logging, configure_otel, configure_probe_access_log_filter
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from emergency_service.config import SERVICE_NAME, EmergencySettings, load_emergency_settings
from emergency_service.dependencies import ServiceContainer, build_container
from emergency_service.errors import IntakeError
from emergency_service.middleware import ObservabilityMiddleware
from emergency_service.observability import (
    CompositeMetricsCollector,
    InMemoryMetricsCollector,
    PrometheusMetricsCollector,
    get_trace_id,
)
from emergency_service.routers.emergency import router as emergency_router
from emergency_service.routers.health import router as health_router

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def create_app(
    settings: EmergencySettings | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    settings = settings or load_emergency_settings()
    configure_logging(settings.LOG_LEVEL)
    configure_otel(service_name=SERVICE_NAME)
    configure_probe_access_log_filter()

    api_metrics = InMemoryMetricsCollector()
    prom_metrics = PrometheusMetricsCollector()
    composite_metrics = CompositeMetricsCollector([api_metrics, prom_metrics])
    container = container or build_container(settings, metrics=composite_metrics)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            await container.start()
        except Exception:
            # The store connects again on the first insert; /health reports the outage.
            logger.exception("store_startup_failed", extra={"component": "app"})
        try:
            yield
        finally:
            await container.close()

    app = FastAPI(title="Roadside Emergency Service", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.container = container
    app.state.api_metrics = api_metrics
    app.state.prom_metrics = prom_metrics
    app.add_middleware(ObservabilityMiddleware, collector=composite_metrics)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(emergency_router)

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=prom_metrics.render(), media_type="text/plain; version=0.0.4")

    @app.exception_handler(IntakeError)
    async def handle_intake_error(request: Request, exc: IntakeError) -> PlainTextResponse:
        context = {
            "component": "emergency_intake",
            "stage": exc.stage,
            "code": exc.code,
            "cause": str(exc),
            "trace_id": get_trace_id(),
            "path": request.url.path,
        }
        if exc.status_code >= 500:
            logger.error("intake_failed", exc_info=exc, extra=context)
        else:
            logger.warning("intake_rejected", extra=context)
        return PlainTextResponse(exc.public_message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> PlainTextResponse:
        logger.error(
            "unhandled_error",
            exc_info=exc,
            extra={"component": "app", "trace_id": get_trace_id(), "path": request.url.path},
        )
        return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)

    return app


app = create_app()
