"""
Error envelope returned by every endpoint: ``{"error": ..., "details": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status


class ApiError(Exception):
    def __init__(
        self,
        status_code: int,
        error: str,
        details: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.headers = headers

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error}
        if self.details is not None:
            payload["details"] = self.details
        return payload


def bad_request(message: str) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, message)


def unauthorized() -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, "Unauthorized")


def server_error(message: str) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def upstream_failure(message: str, exc: BaseException) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, details=str(exc))
