"""Shared-secret check for callers of the versions API."""

from __future__ import annotations

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.config import settings

API_KEY_HEADER = "X-API-Key"


def _guarded(request: Request) -> bool:
    if request.method == "OPTIONS":
        return False
    return request.url.path.startswith(f"{settings.api_prefix}/versions")


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Require X-API-Key on version routes once LANDING_VERSIONS_API_KEY is set.

    With no key configured the landing admin API in front of this service is
    trusted to have authenticated the user. Health and docs stay open.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        expected = settings.api_key
        if not expected or not _guarded(request):
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER, "")
        if not secrets.compare_digest(provided.encode(), expected.encode()):
            return JSONResponse(
                status_code=401,
                content={"detail": f"Invalid or missing {API_KEY_HEADER}"},
            )
        return await call_next(request)
