"""
Record models persisted in the flat JSON files.

Field aliases match the on-disk keys (``password``, ``createdAt``) so files
written by earlier deployments load unchanged.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

GUEST_IDENTITY = "guest"


class ExplainMode(str, Enum):
    EXPLAIN = "explain"
    DEBUG = "debug"
    OPTIMIZE = "optimize"
    COMMENT = "comment"


class UserRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    password_hash: str = Field(alias="password")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class HistoryRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    email: str
    language: str = "unknown"
    mode: ExplainMode = ExplainMode.EXPLAIN
    code: str
    explanation: str
    created_at: str = Field(default_factory=_utc_now_iso, alias="createdAt")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
