"""
Identity Core - Authentication and user management.
"""

from learnpath.kernel.identity.password import hash_password, verify_password
from learnpath.kernel.identity.jwt import (
    AccessTokenPayload,
    JWTManager,
    create_access_token,
    verify_access_token,
)
from learnpath.kernel.identity.identity_service import IdentityService

__all__ = [
    "hash_password",
    "verify_password",
    "AccessTokenPayload",
    "JWTManager",
    "create_access_token",
    "verify_access_token",
    "IdentityService",
]
