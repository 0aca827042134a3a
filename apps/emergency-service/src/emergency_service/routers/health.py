from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from emergency_service.dependencies import get_request_store
from emergency_service.response import success_response
from emergency_service.store import EmergencyRequestStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Roadside emergency service is running"


@router.get("/health")
async def health(store: EmergencyRequestStore = Depends(get_request_store)) -> JSONResponse:
    try:
        await store.ping()
    except Exception:
        logger.exception("health_store_probe_failed", extra={"component": "health"})
        return JSONResponse(status_code=500, content={"status": "fail"})
    return JSONResponse(status_code=200, content={"status": "ok"})


@router.get("/healthz")
async def healthz() -> dict:
    return success_response({"status": "ok"}, meta={})


@router.get("/readyz")
async def readyz() -> dict:
    return success_response({"status": "ready"}, meta={})
