from __future__ import annotations

import uvicorn

from .settings import get_settings


def run() -> None:
    """`python -m gcc_portal` / `gcc-portal`: serve the API on $PORT."""
    settings = get_settings()
    uvicorn.run(
        "gcc_portal.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
        # X-Forwarded-For handling belongs to TRUSTED_PROXY_COUNT, not uvicorn.
        proxy_headers=False,
        reload=False,
    )


if __name__ == "__main__":
    run()
