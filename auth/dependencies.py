"""
FastAPI dependencies for authentication.

Provides ``get_auth_service`` and ``get_current_identity``, used across all
generation and history routes.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from api.errors import unauthorized
from auth.service import AuthService

logger = logging.getLogger(__name__)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def get_current_identity(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    service: AuthService = Depends(get_auth_service),
) -> str:
    """
    Resolve the caller identity, or reject with 403 when enforcement is on
    and the Bearer token is missing, invalid or expired.
    """
    identity = service.resolve(authorization)
    if identity is None:
        logger.info("Rejected unauthenticated request")
        raise unauthorized()
    return identity
