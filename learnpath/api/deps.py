"""
FastAPI dependencies: database session, current user, services.
"""

import uuid
from typing import Annotated, NoReturn, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.database import get_db
from learnpath.engines.prerequisites.module_service import ModuleService
from learnpath.kernel.identity.identity_service import IdentityService
from learnpath.kernel.identity.jwt import verify_access_token
from learnpath.kernel.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized(detail: str) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: DbSession,
) -> User:
    """Resolve the bearer token to an active user; 401 otherwise."""
    if credentials is None:
        _unauthorized("Not authenticated")

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        _unauthorized("Invalid or expired token")

    try:
        user_id = uuid.UUID(payload.sub)
    except ValueError:
        _unauthorized("Invalid or expired token")

    user = await IdentityService(db).get_user_by_id(user_id)
    if user is None:
        _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_module_service(db: DbSession) -> ModuleService:
    return ModuleService(db)


Modules = Annotated[ModuleService, Depends(get_module_service)]


def get_client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")
