"""
Tests for AuthService — register / login / authenticate / resolve.
"""

from unittest.mock import MagicMock

from auth.service import AuthErrorKind, AuthMode, AuthService
from database.models import GUEST_IDENTITY
from database.users import CredentialStore


def _service(tmp_path, mode=AuthMode.REQUIRED) -> AuthService:
    store = CredentialStore(tmp_path / "users.json")
    return AuthService(store, secret="svc-secret", expiry_seconds=3600, bcrypt_rounds=4, mode=mode)


class TestRegister:
    def test_register_then_duplicate(self, tmp_path):
        service = _service(tmp_path)

        first = service.register("a@x.com", "pw")
        assert first.ok
        assert first.message == "User registered successfully"

        second = service.register("a@x.com", "other")
        assert second.error is AuthErrorKind.EXISTS
        assert second.error_message == "User already exists"
        assert len(service.store.load()) == 1

    def test_email_match_is_case_sensitive(self, tmp_path):
        service = _service(tmp_path)
        service.register("a@x.com", "pw")
        assert service.register("A@x.com", "pw").ok
        assert len(service.store.load()) == 2

    def test_password_is_stored_hashed(self, tmp_path):
        service = _service(tmp_path)
        service.register("a@x.com", "pw")
        stored = service.store.find("a@x.com")
        assert stored.password_hash != "pw"

    def test_storage_failure_is_reported(self):
        store = MagicMock()
        store.find.return_value = None
        store.add.return_value = False
        service = AuthService(store, secret="s", bcrypt_rounds=4)

        outcome = service.register("a@x.com", "pw")
        assert outcome.error is AuthErrorKind.STORAGE


class TestLogin:
    def test_unknown_email(self, tmp_path):
        outcome = _service(tmp_path).login("nobody@x.com", "pw")
        assert outcome.error is AuthErrorKind.NOT_FOUND
        assert outcome.error_message == "User not found"

    def test_bad_password(self, tmp_path):
        service = _service(tmp_path)
        service.register("a@x.com", "pw")
        outcome = service.login("a@x.com", "wrong")
        assert outcome.error is AuthErrorKind.BAD_PASSWORD
        assert outcome.error_message == "Invalid password"
        assert outcome.token is None

    def test_token_carries_login_email(self, tmp_path):
        service = _service(tmp_path)
        service.register("a@x.com", "pw")
        outcome = service.login("a@x.com", "pw")
        assert outcome.ok and outcome.token
        assert service.authenticate(outcome.token) == "a@x.com"


class TestAuthenticateAndResolve:
    def test_authenticate_garbage(self, tmp_path):
        service = _service(tmp_path)
        assert service.authenticate("garbage") is None
        assert service.authenticate("") is None
        assert service.authenticate(None) is None

    def test_resolve_requires_bearer_prefix(self, tmp_path):
        service = _service(tmp_path)
        service.register("a@x.com", "pw")
        token = service.login("a@x.com", "pw").token

        assert service.resolve(f"Bearer {token}") == "a@x.com"
        assert service.resolve(token) is None
        assert service.resolve(f"Token {token}") is None
        assert service.resolve(None) is None

    def test_disabled_mode_is_guest(self, tmp_path):
        service = _service(tmp_path, mode=AuthMode.DISABLED)
        assert not service.enforced
        assert service.resolve(None) == GUEST_IDENTITY
        assert service.resolve("Bearer garbage") == GUEST_IDENTITY

    def test_mode_accepts_string(self, tmp_path):
        assert _service(tmp_path, mode="disabled").mode is AuthMode.DISABLED
