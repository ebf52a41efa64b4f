"""
Identity service: registration and password login.
"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.kernel.errors import DuplicateKeyOrNameError
from learnpath.kernel.events.event_store import EventStore
from learnpath.kernel.identity.jwt import JWTManager
from learnpath.kernel.identity.password import hash_password, verify_password
from learnpath.kernel.models.event_log import EventType
from learnpath.kernel.models.user import User
from learnpath.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """User registration and authentication."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.jwt_manager = JWTManager()
        self.event_store = EventStore(session)

    async def register_user(
        self,
        email: str,
        password: str,
        full_name: str,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Register a new user.

        Raises:
            DuplicateKeyOrNameError: If the email is already registered
        """
        if await self.get_user_by_email(email):
            raise DuplicateKeyOrNameError("email", email, message="Email already registered")

        user = User(
            email=email.lower().strip(),
            password_hash=hash_password(password),
            full_name=full_name.strip(),
        )
        self.session.add(user)
        await self.session.flush()

        await self.event_store.log(
            event_type=EventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"email": user.email},
            ip_address=ip_address,
        )
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[tuple[User, str, int]]:
        """
        Check credentials and issue an access token.

        Returns:
            Tuple of (User, access_token, expires_in) or None on bad credentials
        """
        user = await self.get_user_by_email(email)
        if not user or not user.is_active:
            return None
        if not verify_password(password, user.password_hash):
            return None

        token, expires_in = self.jwt_manager.create_access_token(user.id, user.email)

        await self.event_store.log(
            event_type=EventType.USER_LOGGED_IN,
            entity_type="user",
            entity_id=user.id,
            user_id=user.id,
            payload={"method": "password"},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return user, token, expires_in

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email.lower().strip())
        )
        return result.scalar_one_or_none()
