"""
Pytest fixtures for Learning Pathway Studio tests.

All tests share one temporary SQLite file; the schema is rebuilt for every
test that touches the database.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator, Dict, List, Sequence, Tuple

# File-based SQLite so the app's sessions and the fixtures see the same data
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-with-32-chars"
os.environ["GEMINI_API_KEY"] = ""

from learnpath.config import get_settings  # noqa: E402

get_settings.cache_clear()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from learnpath.database import async_session_maker, engine  # noqa: E402
from learnpath.kernel.identity.jwt import JWTManager  # noqa: E402
from learnpath.kernel.identity.password import hash_password  # noqa: E402
from learnpath.kernel.models import Base, Module, Pathway, User  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    """Remove the temp DB file after the run."""
    try:
        if os.path.exists(TEST_DB_PATH):
            os.unlink(TEST_DB_PATH)
    except OSError:
        pass


@pytest_asyncio.fixture
async def db_engine():
    """Fresh schema for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


async def _make_user(session: AsyncSession, email: str, full_name: str) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        password_hash=hash_password("TestPassword123"),
        full_name=full_name,
    )
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    """Pathway author."""
    return await _make_user(db_session, "owner@example.com", "Pathway Owner")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Logged-in user who owns nothing."""
    return await _make_user(db_session, "other@example.com", "Other User")


@pytest_asyncio.fixture
async def pathway(db_session: AsyncSession, owner: User) -> Pathway:
    pathway = Pathway(
        id=uuid.uuid4(),
        title="Intro to Data Engineering",
        description="From SQL basics to streaming pipelines",
        owner_id=owner.id,
    )
    db_session.add(pathway)
    await db_session.commit()
    return pathway


async def _seed_modules(
    session: AsyncSession,
    pathway: Pathway,
    modules: Sequence[Tuple[str, List[List[str]]]],
) -> Dict[str, Module]:
    """Insert modules directly, bypassing validation. Name defaults to the upper-cased key."""
    created = {}
    for key, prerequisites in modules:
        module = Module(
            pathway_id=pathway.id,
            key=key,
            name=key.upper(),
            prerequisites=prerequisites,
            concepts=[],
            content=[],
        )
        session.add(module)
        created[key] = module
    await session.commit()
    return created


async def _load_prerequisites(pathway_id: uuid.UUID) -> Dict[str, List[List[str]]]:
    """Read the persisted graph through a separate session."""
    from learnpath.kernel.persistence.module_gateway import ModuleGateway

    async with async_session_maker() as session:
        modules = await ModuleGateway(session).find_modules_by_pathway(pathway_id)
        return {m.key: m.prerequisites for m in modules}


async def _load_names(pathway_id: uuid.UUID) -> Dict[str, str]:
    from learnpath.kernel.persistence.module_gateway import ModuleGateway

    async with async_session_maker() as session:
        modules = await ModuleGateway(session).find_modules_by_pathway(pathway_id)
        return {m.key: m.name for m in modules}


@pytest.fixture
def jwt_manager() -> JWTManager:
    return JWTManager(
        secret_key="test-secret-key-for-testing-only-with-32-chars",
        algorithm="HS256",
        access_token_expire_minutes=30,
    )


@pytest.fixture
def owner_headers(owner: User, jwt_manager: JWTManager) -> dict:
    token, _ = jwt_manager.create_access_token(user_id=owner.id, email=owner.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user: User, jwt_manager: JWTManager) -> dict:
    token, _ = jwt_manager.create_access_token(user_id=other_user.id, email=other_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_modules(db_session: AsyncSession, pathway: Pathway):
    """``await seed_modules([(key, prerequisites), ...])`` into the test pathway."""

    async def seed(modules: Sequence[Tuple[str, List[List[str]]]]) -> Dict[str, Module]:
        return await _seed_modules(db_session, pathway, modules)

    return seed


@pytest.fixture
def stored_prerequisites(pathway: Pathway):
    """``await stored_prerequisites()`` -> committed key -> groups map."""

    pathway_id = pathway.id

    async def load() -> Dict[str, List[List[str]]]:
        return await _load_prerequisites(pathway_id)

    return load


@pytest.fixture
def stored_names(pathway: Pathway):
    """``await stored_names()`` -> committed key -> name map."""

    pathway_id = pathway.id

    async def load() -> Dict[str, str]:
        return await _load_names(pathway_id)

    return load
