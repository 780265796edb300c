"""
Auth API routes — register, login.

Conflict / not-found outcomes are returned as ``{"error": ...}`` with the
configured ``auth_error_status``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import get_settings
from api.errors import bad_request
from auth.dependencies import get_auth_service
from auth.service import AuthErrorKind, AuthOutcome, AuthService
from config.settings import Settings
from utils.schemas import CredentialsRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _require_credentials(req: CredentialsRequest) -> None:
    if not req.email or not req.email.strip() or not req.password:
        raise bad_request("Email and password are required")


def _render(outcome: AuthOutcome, settings: Settings) -> Dict[str, Any] | JSONResponse:
    if outcome.ok:
        return outcome.model_dump(include={"message", "token"}, exclude_none=True)
    code = (
        status.HTTP_500_INTERNAL_SERVER_ERROR
        if outcome.error is AuthErrorKind.STORAGE
        else settings.auth_error_status
    )
    return JSONResponse(status_code=code, content={"error": outcome.error_message})


@router.post("/register")
async def register(
    req: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Register a new user."""
    _require_credentials(req)
    return _render(service.register(req.email, req.password), settings)


@router.post("/login")
async def login(
    req: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Login with email + password."""
    _require_credentials(req)
    return _render(service.login(req.email, req.password), settings)
