import socket
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from token_login.core.config import settings
from token_login.core.security import FrontendUser, Principal
from token_login.models import Base, Member
from token_login.services.authentication_success import AuthenticationSuccessHandler
from token_login.services.login_events import InteractiveLoginEvent, LoginEventDispatcher
from token_login.services.login_tokens import hash_token
from token_login.services.token_login import TokenLoginHandler
from token_login.services.token_store import InMemoryTokenStore
from token_login.services.user_checker import UserChecker
from token_login.services.user_directory import UserNotFoundError

# Use separate test database
TEST_DATABASE_URL = settings.database_url.replace(
    settings.database_name, f"{settings.database_name}_test"
)

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

# Fixed validation instant shared by the handler, checker and token fixtures
NOW = 1_700_000_000

TEST_MEMBER_ID = 42
TEST_USERNAME = "jdoe"


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured port, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            "PostgreSQL not available. Start database with: docker compose up -d"
        )


# =============================================================================
# Database fixtures (integration tests)
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


# =============================================================================
# In-memory collaborators (unit tests)
# =============================================================================


class InMemoryUserDirectory:
    """UserDirectory over a dict of transient Member rows."""

    def __init__(self, members: list[Member] | None = None) -> None:
        self.members: dict[int, Member] = {m.id: m for m in members or []}

    def add(self, member: Member) -> None:
        self.members[member.id] = member

    def remove(self, member_id: int) -> None:
        del self.members[member_id]

    async def get_member(self, member_id: int) -> Member | None:
        return self.members.get(member_id)

    async def load_user_by_identifier(self, identifier: str) -> Principal:
        for member in self.members.values():
            if member.username == identifier:
                return FrontendUser.from_member(member)
        raise UserNotFoundError(identifier)


def make_member(
    member_id: int = TEST_MEMBER_ID,
    username: str = TEST_USERNAME,
    **overrides: object,
) -> Member:
    """Build a transient enabled member with explicit status columns."""
    fields: dict[str, object] = {
        "id": member_id,
        "username": username,
        "email": f"{username}@example.com",
        "disabled": False,
        "login_allowed": True,
        "locked_until": 0,
        "start": None,
        "stop": None,
        "last_login": 0,
        "current_login": 0,
    }
    fields.update(overrides)
    return Member(**fields)


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    """Fresh in-memory token store for each test."""
    return InMemoryTokenStore()


@pytest.fixture
def directory() -> InMemoryUserDirectory:
    """Directory holding the enabled member jdoe (id 42)."""
    return InMemoryUserDirectory([make_member()])


@pytest.fixture
def login_events() -> list[InteractiveLoginEvent]:
    """Interactive login events captured by the test dispatcher."""
    return []


@pytest.fixture
def dispatcher(login_events: list[InteractiveLoginEvent]) -> LoginEventDispatcher:
    """Dispatcher that records every event into login_events."""
    events = LoginEventDispatcher()

    async def _record(event: InteractiveLoginEvent) -> None:
        login_events.append(event)

    events.add_listener(_record)
    return events


@pytest.fixture
def handler(
    token_store: InMemoryTokenStore,
    directory: InMemoryUserDirectory,
    dispatcher: LoginEventDispatcher,
) -> TokenLoginHandler:
    """Token login handler wired to in-memory collaborators at time NOW."""
    return TokenLoginHandler(
        tokens=token_store,
        directory=directory,
        user_checker=UserChecker(clock=lambda: NOW),
        dispatcher=dispatcher,
        success_handler=AuthenticationSuccessHandler(default_target_path="/"),
        login_label="Login",
        clock=lambda: NOW,
    )


def add_token(
    store: InMemoryTokenStore,
    plain: str,
    *,
    member_id: int = TEST_MEMBER_ID,
    expires: int = NOW + 3600,
    jump_to: str | None = "/members/welcome",
) -> None:
    """Store a plain token the way the issuing flow would (hashed)."""
    store.add(
        member_id=member_id,
        token_hash=hash_token(plain),
        expires=expires,
        jump_to=jump_to,
    )


# =============================================================================
# HTTP client fixtures
# =============================================================================


@pytest_asyncio.fixture
async def login_client(
    handler: TokenLoginHandler,
) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client whose token login handler uses in-memory stores."""
    from token_login.api.deps import get_token_login_handler
    from token_login.main import app

    app.dependency_overrides[get_token_login_handler] = lambda: handler

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=False,
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Autouse Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def auth_settings() -> Iterator[None]:
    """Sign session cookies with the test secret.

    Cookies are marked non-Secure so the http://test client sends them back.
    """
    original_secret = settings.auth_secret
    original_secure = settings.auth_cookie_secure
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)
    settings.auth_cookie_secure = False

    yield

    settings.auth_secret = original_secret
    settings.auth_cookie_secure = original_secure


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Rate limiting is tested separately; disable for other tests
    to avoid flaky failures from rate limit triggers.
    """
    from token_login.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled
