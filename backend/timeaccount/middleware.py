from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request, Response

    from timeaccount.config import Settings

logger = logging.getLogger(__name__)

# Balance reads that rebuild many months are worth seeing in the logs.
SLOW_REQUEST_SECONDS = 1.0


async def log_slow_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started
    if elapsed >= SLOW_REQUEST_SECONDS:
        logger.warning(
            "Slow request %s %s -> %d in %.2fs", request.method, request.url.path, response.status_code, elapsed
        )
    return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure CORS and slow-request logging."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.middleware("http")(log_slow_requests)
