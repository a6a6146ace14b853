"""
hr_portal.api.__main__

Entrypoint for running the FastAPI application via `python -m hr_portal.api`.
"""

from __future__ import annotations

import uvicorn

from hr_portal.api.app import create_app
from hr_portal.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        access_log=False,  # RequestContextMiddleware logs each request
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Deployed behind a reverse proxy that terminates TLS and forwards the
# frontend's Authorization header untouched.
