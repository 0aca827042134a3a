from __future__ import annotations

from devkit.config import ServiceSettings

SERVICE_NAME = "emergency-service"
DEFAULT_WHATSAPP_SENDER = "whatsapp:+14155238886"


class EmergencySettings(ServiceSettings):
    SERVICE_NAME: str = SERVICE_NAME

    TWILIO_ACCOUNT_SID: str | None = None
    TWILIO_AUTH_TOKEN: str | None = None
    NOTIFICATION_SENDER: str = DEFAULT_WHATSAPP_SENDER
    NOTIFICATION_RECIPIENT: str | None = None
    MESSAGING_TIMEOUT_SECONDS: float = 10.0

    GOOGLE_MAPS_API_KEY: str | None = None
    GEOCODING_TIMEOUT_SECONDS: float = 5.0

    # Comma-separated; "*" allows any origin.
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


def load_emergency_settings() -> EmergencySettings:
    return EmergencySettings()
