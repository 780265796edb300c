"""
Pydantic request schemas for the HTTP API.

Request fields are optional at the schema level; handlers check presence
themselves so a missing field yields a 400 with a specific message.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


class CredentialsRequest(_Request):
    email: Optional[str] = None
    password: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Generation
# ═══════════════════════════════════════════════════════════════════════════════


class ExplainRequest(_Request):
    code: Optional[str] = None
    language: Optional[str] = None
    mode: Optional[str] = None


class ExplainLineRequest(_Request):
    code: Optional[str] = None
    line_number: Optional[Union[int, str]] = Field(None, alias="lineNumber")
    language: Optional[str] = None


class ConvertRequest(_Request):
    code: Optional[str] = None
    source_language: Optional[str] = Field(None, alias="from")
    target_language: Optional[str] = Field(None, alias="to")


class CodeRequest(_Request):
    """Shared body for ``/optimize`` and ``/fill-code``."""

    code: Optional[str] = None
    language: Optional[str] = None


class PromptToCodeRequest(_Request):
    prompt: Optional[str] = None
    language: Optional[str] = None
