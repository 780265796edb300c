"""
Auth service — register, login and bearer-token authentication.

Every operation returns an explicit outcome instead of raising, so the HTTP
layer decides how each failure kind is rendered. There is no lockout, rate
limiting or password reset; repeated login attempts are not throttled.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from auth.jwt import create_token, verify_token
from auth.password import DEFAULT_ROUNDS, hash_password, verify_password
from config.settings import AuthMode, config
from database.models import GUEST_IDENTITY, UserRecord
from database.users import CredentialStore

logger = logging.getLogger(__name__)

__all__ = ["AuthErrorKind", "AuthMode", "AuthOutcome", "AuthService", "ERROR_MESSAGES"]


class AuthErrorKind(str, Enum):
    EXISTS = "exists"
    NOT_FOUND = "not_found"
    BAD_PASSWORD = "bad_password"
    STORAGE = "storage"


ERROR_MESSAGES = {
    AuthErrorKind.EXISTS: "User already exists",
    AuthErrorKind.NOT_FOUND: "User not found",
    AuthErrorKind.BAD_PASSWORD: "Invalid password",
    AuthErrorKind.STORAGE: "Failed to save user",
}


class AuthOutcome(BaseModel):
    message: Optional[str] = None
    token: Optional[str] = None
    error: Optional[AuthErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        return ERROR_MESSAGES[self.error] if self.error else None


class AuthService:
    """Composes the credential store, password hasher and token signer."""

    def __init__(
        self,
        store: CredentialStore,
        *,
        secret: str | None = None,
        expiry_seconds: int | None = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
        mode: AuthMode | str = AuthMode.REQUIRED,
    ):
        self.store = store
        self.secret = secret or config.jwt_secret
        self.expiry_seconds = config.jwt_expiry_seconds if expiry_seconds is None else expiry_seconds
        self.bcrypt_rounds = bcrypt_rounds
        self.mode = AuthMode(mode)

    @property
    def enforced(self) -> bool:
        return self.mode is AuthMode.REQUIRED

    def register(self, email: str, password: str) -> AuthOutcome:
        if self.store.find(email) is not None:
            return AuthOutcome(error=AuthErrorKind.EXISTS)

        record = UserRecord(email=email, password_hash=hash_password(password, self.bcrypt_rounds))
        if not self.store.add(record):
            # add() re-checks under the store lock; a concurrent registration may have won.
            if self.store.find(email) is not None:
                return AuthOutcome(error=AuthErrorKind.EXISTS)
            return AuthOutcome(error=AuthErrorKind.STORAGE)

        logger.info("Registered user %s", email)
        return AuthOutcome(message="User registered successfully")

    def login(self, email: str, password: str) -> AuthOutcome:
        user = self.store.find(email)
        if user is None:
            return AuthOutcome(error=AuthErrorKind.NOT_FOUND)
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected for %s: bad password", email)
            return AuthOutcome(error=AuthErrorKind.BAD_PASSWORD)

        token = create_token(email, secret=self.secret, expiry_seconds=self.expiry_seconds)
        logger.info("Login: %s", email)
        return AuthOutcome(token=token)

    def authenticate(self, token: str | None) -> Optional[str]:
        """Return the identity embedded in ``token`` or ``None``."""
        if not token:
            return None
        claims = verify_token(token, secret=self.secret)
        return claims.email if claims else None

    def resolve(self, authorization: str | None) -> Optional[str]:
        """
        Resolve the caller identity from an ``Authorization`` header value.

        With enforcement disabled every caller is the guest identity.
        """
        if not self.enforced:
            return GUEST_IDENTITY
        if not authorization or not authorization.startswith("Bearer "):
            return None
        return self.authenticate(authorization[7:].strip())
