from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from emergency_service.errors import InvalidRequest
from emergency_service.models import EmergencyRequest

TEXT_FIELDS = ("name", "phone", "issue", "vehicle")
COORDINATE_FIELDS = ("latitude", "longitude")


def _is_number(value: Any) -> bool:
    # bool is an int subclass but JSON true/false is not a coordinate.
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    # NaN and Infinity are not JSON, but the body parser lets them through.
    return isinstance(value, int) or math.isfinite(value)


def validate_emergency_request(payload: Any) -> EmergencyRequest:
    """Check an inbound payload and return the trimmed request.

    Text fields must be strings that are non-empty after stripping. Coordinates
    must be finite JSON numbers; their range is not checked, and ``0`` is valid.
    Raises ``InvalidRequest`` naming every offending field.
    """
    if not isinstance(payload, Mapping):
        raise InvalidRequest(["body"])

    invalid = [
        field
        for field in TEXT_FIELDS
        if not isinstance(payload.get(field), str) or not payload[field].strip()
    ]
    invalid.extend(field for field in COORDINATE_FIELDS if not _is_number(payload.get(field)))
    if invalid:
        raise InvalidRequest(invalid)

    return EmergencyRequest(
        name=payload["name"].strip(),
        phone=payload["phone"].strip(),
        issue=payload["issue"].strip(),
        vehicle=payload["vehicle"].strip(),
        latitude=payload["latitude"],
        longitude=payload["longitude"],
    )
