from __future__ import annotations

import logging
from typing import Protocol

from emergency_service.errors import DeliveryFailure, MessagingError
from emergency_service.models import DeliveryReceipt, EmergencyRequest, NotificationMessage

logger = logging.getLogger(__name__)

MAP_URL_TEMPLATE = "https://www.google.com/maps?q={lat},{lng}"
MESSAGE_TITLE = "New Emergency Request:"


class MessagingClient(Protocol):
    async def send(self, *, sender: str, recipient: str, body: str) -> str: ...


def build_map_url(latitude: float, longitude: float) -> str:
    return MAP_URL_TEMPLATE.format(lat=latitude, lng=longitude)


def format_message_body(request: EmergencyRequest, address: str, map_url: str) -> str:
    return "\n".join(
        [
            MESSAGE_TITLE,
            f"Name: {request.name}",
            f"Phone: {request.phone}",
            f"Issue: {request.issue}",
            f"Vehicle: {request.vehicle}",
            f"Address: {address}",
            f"Map: {map_url}",
        ]
    )


class Notifier:
    def __init__(self, client: MessagingClient, *, sender: str, recipient: str | None) -> None:
        self._client = client
        self._sender = sender
        self._recipient = recipient

    def compose(self, request: EmergencyRequest, address: str, map_url: str) -> NotificationMessage:
        return NotificationMessage(
            sender=self._sender,
            recipient=self._recipient or "",
            body=format_message_body(request, address, map_url),
        )

    async def notify(self, request: EmergencyRequest, address: str, map_url: str) -> DeliveryReceipt:
        message = self.compose(request, address, map_url)
        if not message.recipient:
            raise DeliveryFailure("notification recipient is not configured")
        try:
            sid = await self._client.send(sender=message.sender, recipient=message.recipient, body=message.body)
        except MessagingError as exc:
            raise DeliveryFailure(str(exc)) from exc
        logger.info("notification_sent", extra={"component": "notifier", "message_sid": sid})
        return DeliveryReceipt(message_sid=sid, recipient=message.recipient)
