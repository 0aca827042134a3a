from __future__ import annotations

import uvicorn

from emergency_service.config import load_emergency_settings


def main() -> None:
    settings = load_emergency_settings()
    uvicorn.run("emergency_service.app:app", host=settings.HOST, port=settings.PORT, reload=False)


if __name__ == "__main__":
    main()
