"""Shared-secret authentication for partner ingestion endpoints.

Partners authenticate with a static key sent in the ``api-key`` header.
The dependency is attached at router level so it runs before the request
body is bound and before a database session is touched.
"""

from __future__ import annotations

import hmac
from typing import Annotated

import structlog
from fastapi import Depends, Request

from .config import Settings, get_settings
from .exceptions import UnauthorizedError

log = structlog.get_logger(__name__)


def api_key_matches(provided: str | None, expected: str) -> bool:
    """Constant-time comparison of the presented key against the configured one."""
    if provided is None:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_key(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """FastAPI dependency that enforces the partner shared secret."""
    provided = request.headers.get(settings.INGEST_API_KEY_HEADER)
    if not api_key_matches(provided, settings.INGEST_API_KEY):
        log.warning(
            "api_key_rejected",
            header_present=provided is not None,
            path=request.url.path,
        )
        raise UnauthorizedError()
