"""
JWT access tokens for API authentication.

Tokens are stateless bearer tokens; there is no refresh flow.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from learnpath.config import get_settings


class AccessTokenPayload(BaseModel):
    """Decoded access token claims."""

    sub: str  # User ID
    email: str
    exp: datetime
    iat: datetime


class JWTManager:
    """Create and verify signed access tokens."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> tuple[str, int]:
        """
        Create a signed access token.

        Returns:
            Tuple of (token, seconds until expiry)
        """
        now = datetime.now(timezone.utc)
        lifetime = expires_delta or timedelta(minutes=self.access_token_expire_minutes)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + lifetime,
            "type": "access",
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return token, int(lifetime.total_seconds())

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """Decode a token; None if the signature, expiry or type is wrong."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        if payload.get("type") != "access":
            return None

        return AccessTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        )


def create_access_token(user_id: uuid.UUID, email: str) -> tuple[str, int]:
    return JWTManager().create_access_token(user_id, email)


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    return JWTManager().verify_access_token(token)
