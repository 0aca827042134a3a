from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

UNKNOWN_LOCATION = "Unknown location"


@dataclass(frozen=True)
class EmergencyRequest:
    name: str
    phone: str
    issue: str
    vehicle: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StoredEmergencyRequest:
    request_id: str
    created_at: datetime
    request: EmergencyRequest


@dataclass(frozen=True)
class Resolved:
    address: str

    @property
    def display_address(self) -> str:
        return self.address


@dataclass(frozen=True)
class Degraded:
    reason: str

    @property
    def display_address(self) -> str:
        return UNKNOWN_LOCATION


AddressResolution = Union[Resolved, Degraded]


@dataclass(frozen=True)
class NotificationMessage:
    sender: str
    recipient: str
    body: str


@dataclass(frozen=True)
class DeliveryReceipt:
    message_sid: str
    recipient: str


class IntakeStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STORED = "stored"
    ADDRESS_RESOLVED = "address_resolved"
    NOTIFIED = "notified"
    COMPLETED = "completed"


@dataclass(frozen=True)
class IntakeResult:
    stage: IntakeStage
    stored: StoredEmergencyRequest
    address: AddressResolution
    receipt: DeliveryReceipt
