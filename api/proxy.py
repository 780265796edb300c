"""
Forwarding proxy for browser clients that must not hold the backend secret.

``POST /api/proxy`` relays the JSON body to ``{BACKEND_URL}/explain`` with
the shared secret injected as both ``Authorization: Bearer`` and
``x-api-key``, then mirrors the backend's status, body and content type.
"""

from __future__ import annotations

import json
import logging

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import get_settings
from config.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])


def _forward_headers(secret: str) -> dict:
    headers = {"Content-Type": "application/json"}
    if secret:
        headers["Authorization"] = f"Bearer {secret}"
        headers["x-api-key"] = secret
    return headers


@router.post("/api/proxy")
async def proxy_explain(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Response:
    try:
        raw = await request.body()
        payload = json.loads(raw) if raw else {}
        target = f"{settings.backend_url.rstrip('/')}/explain"

        async with httpx.AsyncClient(
            transport=getattr(request.app.state, "proxy_transport", None),
            timeout=settings.proxy_timeout_seconds,
        ) as client:
            upstream = await client.post(
                target,
                json=payload,
                headers=_forward_headers(settings.backend_secret),
            )
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("proxy error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "proxy_error", "details": str(exc)},
        )

    logger.debug("proxy → %s returned %d", target, upstream.status_code)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
    )
