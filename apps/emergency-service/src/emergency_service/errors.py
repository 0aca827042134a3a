from __future__ import annotations


class IntakeError(Exception):
    """Base for failures that end an intake with a caller-visible status.

    ``str(exc)`` holds the internal cause for logs; ``public_message`` is the
    only text ever returned to the caller.
    """

    code = "INTAKE_FAILED"
    status_code = 500
    public_message = "Internal server error"
    stage = "unknown"


class InvalidRequest(IntakeError):
    code = "INVALID_REQUEST"
    status_code = 400
    public_message = "Invalid or missing required fields"
    stage = "validate"

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"invalid fields: {', '.join(fields)}")
        self.fields = fields


class PersistenceFailure(IntakeError):
    code = "PERSISTENCE_FAILURE"
    stage = "store"


class DeliveryFailure(IntakeError):
    code = "DELIVERY_FAILURE"
    stage = "notify"


class GeocodingError(Exception):
    """Raised by the geocoding client; never escapes the address resolver."""


class MessagingError(Exception):
    """Raised by the messaging client; surfaced to callers as DeliveryFailure."""
