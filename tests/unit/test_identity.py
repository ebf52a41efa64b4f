"""Unit tests for password hashing and access tokens."""

import uuid
from datetime import timedelta

from jose import jwt

from learnpath.kernel.identity.jwt import JWTManager
from learnpath.kernel.identity.password import hash_password, verify_password

SECRET = "test-secret-key-for-testing-only-with-32-chars"


class TestPasswordHasher:
    """Tests for bcrypt hashing."""

    def test_hash_password(self):
        hashed = hash_password("SecurePassword123")
        assert hashed != "SecurePassword123"
        assert hashed.startswith("$2b$")

    def test_verify_correct_password(self):
        hashed = hash_password("SecurePassword123")
        assert verify_password("SecurePassword123", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("SecurePassword123")
        assert verify_password("WrongPassword123", hashed) is False

    def test_hashes_are_salted(self):
        assert hash_password("SamePassword1") != hash_password("SamePassword1")

    def test_long_password_truncated_consistently(self):
        password = "a1" * 60
        assert verify_password(password, hash_password(password)) is True

    def test_malformed_hash(self):
        assert verify_password("anything1", "not-a-bcrypt-hash") is False


class TestJWTManager:
    """Tests for access token creation and verification."""

    def _manager(self, **overrides):
        options = {"secret_key": SECRET, "algorithm": "HS256", "access_token_expire_minutes": 30}
        options.update(overrides)
        return JWTManager(**options)

    def test_round_trip(self):
        user_id = uuid.uuid4()
        token, expires_in = self._manager().create_access_token(user_id, "author@example.com")

        payload = self._manager().verify_access_token(token)
        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.email == "author@example.com"
        assert expires_in == 30 * 60

    def test_expired_token(self):
        token, _ = self._manager().create_access_token(
            uuid.uuid4(), "author@example.com", expires_delta=timedelta(seconds=-5)
        )
        assert self._manager().verify_access_token(token) is None

    def test_wrong_secret(self):
        token, _ = self._manager().create_access_token(uuid.uuid4(), "author@example.com")
        other = self._manager(secret_key="another-secret-key-that-is-also-32-chars")
        assert other.verify_access_token(token) is None

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "email": "x@example.com", "type": "refresh"},
            SECRET,
            algorithm="HS256",
        )
        assert self._manager().verify_access_token(token) is None

    def test_garbage_token(self):
        assert self._manager().verify_access_token("not.a.token") is None
