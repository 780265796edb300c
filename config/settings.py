"""
Application settings loaded from environment variables.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from database.history import HistoryScope

DEFAULT_JWT_SECRET = "please_change_this_secret"


class AuthMode(str, Enum):
    REQUIRED = "required"
    DISABLED = "disabled"


class Settings(BaseSettings):
    # ── Security Secrets ──────────────────────────────────────────────────
    jwt_secret: str = DEFAULT_JWT_SECRET     # HS256 secret for bearer tokens
    jwt_expiry_seconds: int = 43200          # 12 hours
    bcrypt_rounds: int = 10

    # ── Auth / History modes ──────────────────────────────────────────────
    auth_mode: AuthMode = AuthMode.REQUIRED
    history_scope: Optional[HistoryScope] = None  # derived from auth_mode when unset
    auth_error_status: int = 400             # status for duplicate-register / failed-login payloads

    # ── Rate limiting (generation endpoints) ──────────────────────────────
    rate_limit_max_requests: int = 30        # per client per window; 0 disables
    rate_limit_window_seconds: float = 60.0

    # ── LLM provider ──────────────────────────────────────────────────────
    llm_provider: str = "openrouter"         # "openrouter" | "openai"
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openai_api_key: str = ""
    llm_model: str = "gpt-3.5-turbo"
    llm_max_tokens: int = 900
    llm_temperature: float = 0.3
    llm_timeout_seconds: float = 60.0
    app_title: str = "Code Explainer Pro"
    http_referer: str = "http://localhost:3000"
    max_code_chars: int = 8000

    # ── Storage ──────────────────────────────────────────────────────────
    data_dir: str = "."
    users_file: str = "users.json"
    history_file: str = "user_history.json"
    uploads_dir: str = "uploads"

    # ── OCR ──────────────────────────────────────────────────────────────
    ocr_language: str = "eng"
    tesseract_cmd: str = ""                  # explicit tesseract binary, PATH lookup when empty

    # ── Forwarding proxy ─────────────────────────────────────────────────
    backend_url: str = "https://code-explainer-pro.onrender.com"
    backend_secret: str = ""
    proxy_timeout_seconds: float = 60.0

    # ── Server ───────────────────────────────────────────────────────────
    frontend_dir: str = "frontend"
    port: int = 3000
    host: str = "0.0.0.0"
    debug: bool = False
    cors_origins: List[str] = ["*"]

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("auth_mode", "history_scope", mode="before")
    @classmethod
    def _normalise_mode(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @property
    def auth_enforced(self) -> bool:
        return self.auth_mode is not AuthMode.DISABLED

    @property
    def resolved_history_scope(self) -> HistoryScope:
        if self.history_scope is not None:
            return self.history_scope
        return HistoryScope.PER_USER if self.auth_enforced else HistoryScope.SHARED

    @property
    def users_path(self) -> Path:
        return Path(self.data_dir) / self.users_file

    @property
    def history_path(self) -> Path:
        return Path(self.data_dir) / self.history_file

    @property
    def uploads_path(self) -> Path:
        return Path(self.data_dir) / self.uploads_dir

    def llm_api_key(self) -> str:
        if self.llm_provider.lower() == "openai":
            return self.openai_api_key
        return self.openrouter_api_key

    def insecure_defaults(self) -> List[str]:
        """
        Names of settings still running on insecure fallback values.

        These are deployment misconfigurations; they are reported, never
        replaced.
        """
        issues = []
        if self.jwt_secret == DEFAULT_JWT_SECRET:
            issues.append("JWT_SECRET")
        if not self.llm_api_key():
            issues.append(
                "OPENAI_API_KEY" if self.llm_provider.lower() == "openai" else "OPENROUTER_API_KEY"
            )
        if not self.backend_secret:
            issues.append("BACKEND_SECRET")
        if not self.auth_enforced and self.resolved_history_scope is HistoryScope.SHARED:
            issues.append("AUTH_MODE")
        return issues


config = Settings()
