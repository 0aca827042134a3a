from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from emergency_service.errors import DeliveryFailure, IntakeError, PersistenceFailure
from emergency_service.models import (
    AddressResolution,
    Degraded,
    DeliveryReceipt,
    EmergencyRequest,
    IntakeResult,
    IntakeStage,
    StoredEmergencyRequest,
)
from emergency_service.services.notifier import build_map_url
from emergency_service.services.validator import validate_emergency_request

logger = logging.getLogger(__name__)


class RequestStore(Protocol):
    async def insert(self, request: EmergencyRequest) -> StoredEmergencyRequest: ...


class Resolver(Protocol):
    async def resolve(self, latitude: float, longitude: float) -> AddressResolution: ...


class RequestNotifier(Protocol):
    async def notify(self, request: EmergencyRequest, address: str, map_url: str) -> DeliveryReceipt: ...


class OutcomeRecorder(Protocol):
    def record_outcome(self, outcome: str) -> None: ...


def _log_abandoned_insert(insert: asyncio.Future) -> None:
    if insert.cancelled():
        return
    exc = insert.exception()
    if exc is not None:
        logger.error(
            "intake_abandoned_insert_failed",
            exc_info=exc,
            extra={"component": "emergency_intake", "stage": "store", "cause": str(exc)},
        )
        return
    logger.info(
        "intake_abandoned_insert_stored",
        extra={"component": "emergency_intake", "request_id": insert.result().request_id},
    )


class EmergencyIntakeService:
    """Runs one emergency request through validate, store, resolve and notify.

    The record is stored before anything else touches the network, and a
    started insert is shielded from caller cancellation. Address resolution
    cannot fail the request. A delivery failure is reported to the caller but
    leaves the stored record in place.
    """

    def __init__(
        self,
        *,
        store: RequestStore,
        resolver: Resolver,
        notifier: RequestNotifier,
        metrics: OutcomeRecorder | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._notifier = notifier
        self._metrics = metrics

    async def submit(self, payload: Any) -> IntakeResult:
        try:
            result = await self._run(payload)
        except IntakeError as exc:
            self._record(exc.code.lower())
            raise
        self._record("completed")
        return result

    async def _run(self, payload: Any) -> IntakeResult:
        self._log_stage(IntakeStage.RECEIVED)
        request = validate_emergency_request(payload)
        self._log_stage(IntakeStage.VALIDATED)

        stored = await self._store_request(request)
        self._log_stage(IntakeStage.STORED, stored.request_id)

        address = await self._resolver.resolve(request.latitude, request.longitude)
        self._log_stage(IntakeStage.ADDRESS_RESOLVED, stored.request_id, degraded=isinstance(address, Degraded))

        receipt = await self._notify(stored, address)
        self._log_stage(IntakeStage.NOTIFIED, stored.request_id)
        self._log_stage(IntakeStage.COMPLETED, stored.request_id)

        return IntakeResult(stage=IntakeStage.COMPLETED, stored=stored, address=address, receipt=receipt)

    async def _store_request(self, request: EmergencyRequest) -> StoredEmergencyRequest:
        insert = asyncio.ensure_future(self._store.insert(request))
        try:
            return await asyncio.shield(insert)
        except asyncio.CancelledError:
            # The insert keeps running; its outcome is only reported here.
            insert.add_done_callback(_log_abandoned_insert)
            raise
        except IntakeError:
            raise
        except Exception as exc:
            raise PersistenceFailure(f"unexpected store error: {type(exc).__name__}") from exc

    async def _notify(self, stored: StoredEmergencyRequest, address: AddressResolution) -> DeliveryReceipt:
        request = stored.request
        map_url = build_map_url(request.latitude, request.longitude)
        try:
            return await self._notifier.notify(request, address.display_address, map_url)
        except DeliveryFailure as exc:
            logger.error(
                "intake_delivery_failed",
                extra={"component": "emergency_intake", "request_id": stored.request_id, "cause": str(exc)},
            )
            raise
        except IntakeError:
            raise
        except Exception as exc:
            logger.exception(
                "intake_delivery_failed",
                extra={"component": "emergency_intake", "request_id": stored.request_id},
            )
            raise DeliveryFailure(f"unexpected notifier error: {type(exc).__name__}") from exc

    def _log_stage(self, stage: IntakeStage, request_id: str | None = None, **context: Any) -> None:
        logger.info(
            "intake_stage",
            extra={"component": "emergency_intake", "stage": stage.value, "request_id": request_id, **context},
        )

    def _record(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.record_outcome(outcome)
