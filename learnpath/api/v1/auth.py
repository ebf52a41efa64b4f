"""
Account endpoints: register, log in, read the current profile.

Tokens are plain bearer access tokens; pathway authoring only needs to know
who the owner is.
"""

from typing import Tuple

from fastapi import APIRouter, HTTPException, Request, status

from learnpath.api.deps import CurrentUser, DbSession, get_client_ip, get_user_agent
from learnpath.kernel.identity.identity_service import IdentityService
from learnpath.kernel.models.user import User
from learnpath.schemas.auth import TokenResponse, UserCreate, UserLogin, UserResponse

router = APIRouter()


def _token_response(result: Tuple[User, str, int]) -> TokenResponse:
    user, access_token, expires_in = result
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(request: Request, data: UserCreate, db: DbSession):
    """Create an account and log it in."""
    identity = IdentityService(db)
    ip_address = get_client_ip(request)

    await identity.register_user(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        ip_address=ip_address,
    )

    result = await identity.authenticate(
        email=data.email,
        password=data.password,
        ip_address=ip_address,
        user_agent=get_user_agent(request),
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to authenticate after registration",
        )
    return _token_response(result)


@router.post("/login", response_model=TokenResponse)
async def login(request: Request, data: UserLogin, db: DbSession):
    result = await IdentityService(db).authenticate(
        email=data.email,
        password=data.password,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _token_response(result)


@router.get("/me", response_model=UserResponse)
async def read_profile(user: CurrentUser):
    return UserResponse.model_validate(user)
