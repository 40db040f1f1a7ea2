"""Integration tests for login token storage and the token login flow.

Covers LoginTokenRepository, MemberRepository, SqlTokenStore,
MemberUserDirectory and TokenLoginHandler end to end against a real
PostgreSQL database.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scripts.issue_login_token import UnknownMemberError, issue_for_username
from scripts.purge_expired_login_tokens import purge_expired_login_tokens
from token_login.core.errors import MemberNotFoundError, TokenInvalidError
from token_login.core.security import FrontendUser, RequestContext
from token_login.models import LoginToken, Member
from token_login.repositories.login_token_repository import LoginTokenRepository
from token_login.repositories.member_repository import MemberRepository
from token_login.services.authentication_success import AuthenticationSuccessHandler
from token_login.services.login_events import (
    LoginEventDispatcher,
    LoginTimestampListener,
)
from token_login.services.login_tokens import hash_token, issue_login_token
from token_login.services.token_login import TokenLoginHandler
from token_login.services.token_store import SqlTokenStore
from token_login.services.user_checker import UserChecker
from token_login.services.user_directory import (
    MemberUserDirectory,
    UserNotFoundError,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_NOW = 1_700_000_000
_TOKEN = "abc123"
_URI = f"/login/token/{_TOKEN}"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def member(db_session: AsyncSession) -> Member:
    """Enabled member jdoe."""
    return await MemberRepository.create(
        db_session, username="jdoe", email="jdoe@example.com"
    )


@pytest.fixture
async def login_token(db_session: AsyncSession, member: Member) -> LoginToken:
    """Committed token "abc123" for jdoe, valid for an hour past _NOW."""
    token = await LoginTokenRepository.create(
        db_session,
        member_id=member.id,
        token_hash=hash_token(_TOKEN),
        expires=_NOW + 3600,
        jump_to="/members/welcome",
    )
    await db_session.commit()
    return token


def _handler(
    db: AsyncSession, directory: MemberUserDirectory | None = None
) -> TokenLoginHandler:
    dispatcher = LoginEventDispatcher()
    dispatcher.add_listener(LoginTimestampListener(db, clock=lambda: _NOW))
    return TokenLoginHandler(
        tokens=SqlTokenStore(db),
        directory=directory or MemberUserDirectory(db),
        user_checker=UserChecker(clock=lambda: _NOW),
        dispatcher=dispatcher,
        success_handler=AuthenticationSuccessHandler(default_target_path="/"),
        login_label="Login",
        clock=lambda: _NOW,
    )


async def _token_rows(db: AsyncSession) -> list[LoginToken]:
    result = await db.execute(select(LoginToken))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# LoginTokenRepository
# ---------------------------------------------------------------------------


class TestLoginTokenRepository:
    async def test_get_valid_finds_unexpired(self, db_session, login_token):
        found = await LoginTokenRepository.get_valid(
            db_session, token_hash=hash_token(_TOKEN), now=_NOW
        )

        assert found is not None
        assert found.id == login_token.id

    async def test_get_valid_boundary_is_inclusive(self, db_session, login_token):
        found = await LoginTokenRepository.get_valid(
            db_session, token_hash=hash_token(_TOKEN), now=_NOW + 3600
        )

        assert found is not None

    async def test_get_valid_ignores_expired(self, db_session, login_token):
        found = await LoginTokenRepository.get_valid(
            db_session, token_hash=hash_token(_TOKEN), now=_NOW + 3601
        )

        assert found is None

    async def test_consume_only_once(self, db_session, login_token):
        first = await LoginTokenRepository.consume(
            db_session, token_id=login_token.id, token_hash=login_token.token
        )
        second = await LoginTokenRepository.consume(
            db_session, token_id=login_token.id, token_hash=login_token.token
        )

        assert first is True
        assert second is False

    async def test_delete_expired(self, db_session, member, login_token):
        await LoginTokenRepository.create(
            db_session,
            member_id=member.id,
            token_hash=hash_token("dead00"),
            expires=_NOW - 1,
        )

        deleted = await LoginTokenRepository.delete_expired(db_session, now=_NOW)

        assert deleted == 1
        remaining = await _token_rows(db_session)
        assert [row.id for row in remaining] == [login_token.id]

    async def test_tokens_removed_with_member(self, db_session, member, login_token):
        await db_session.delete(member)
        await db_session.flush()

        assert await _token_rows(db_session) == []


# ---------------------------------------------------------------------------
# MemberRepository / MemberUserDirectory
# ---------------------------------------------------------------------------


class TestMemberLookup:
    async def test_get_by_username(self, db_session, member):
        found = await MemberRepository.get_by_username(db_session, "jdoe")

        assert found is not None
        assert found.id == member.id

    async def test_new_member_has_default_status(self, member):
        assert member.disabled is False
        assert member.login_allowed is True
        assert member.locked_until == 0

    async def test_record_login_shifts_timestamps(self, db_session, member):
        await MemberRepository.record_login(db_session, member.id, now=_NOW)
        await MemberRepository.record_login(db_session, member.id, now=_NOW + 10)
        await db_session.refresh(member)

        assert member.last_login == _NOW
        assert member.current_login == _NOW + 10

    async def test_directory_loads_frontend_user(self, db_session, member):
        directory = MemberUserDirectory(db_session)

        user = await directory.load_user_by_identifier("jdoe")

        assert isinstance(user, FrontendUser)
        assert user.member_id == member.id

    async def test_directory_unknown_username(self, db_session):
        directory = MemberUserDirectory(db_session)

        with pytest.raises(UserNotFoundError):
            await directory.load_user_by_identifier("nobody")


# ---------------------------------------------------------------------------
# TokenLoginHandler against PostgreSQL
# ---------------------------------------------------------------------------


class TestTokenLoginFlow:
    async def test_get_leaves_row(self, db_session, login_token):
        response = await _handler(db_session).handle(
            _TOKEN, RequestContext(method="GET", request_uri=_URI)
        )

        assert response.status_code == 200
        assert len(await _token_rows(db_session)) == 1

    async def test_post_logs_in_and_deletes_row(self, db_session, member, login_token):
        context = RequestContext(method="POST", request_uri=_URI)

        response = await _handler(db_session).handle(_TOKEN, context)

        assert response.status_code == 303
        assert response.headers["location"] == "/members/welcome"
        assert context.security.credential.user.identifier == "jdoe"
        assert await _token_rows(db_session) == []
        await db_session.refresh(member)
        assert member.current_login == _NOW

    async def test_replay_denied(self, db_session, login_token):
        handler = _handler(db_session)
        await handler.handle(_TOKEN, RequestContext(method="POST", request_uri=_URI))

        with pytest.raises(TokenInvalidError):
            await handler.handle(
                _TOKEN, RequestContext(method="POST", request_uri=_URI)
            )

    async def test_expired_token_kept(self, db_session, member):
        await LoginTokenRepository.create(
            db_session,
            member_id=member.id,
            token_hash=hash_token("dead00"),
            expires=_NOW - 10,
        )
        await db_session.commit()

        with pytest.raises(TokenInvalidError):
            await _handler(db_session).handle(
                "dead00", RequestContext(method="POST", request_uri="/x")
            )

        assert len(await _token_rows(db_session)) == 1

    async def test_dangling_member_reference(self, db_session, login_token):
        class _EmptyDirectory(MemberUserDirectory):
            async def get_member(self, member_id):
                return None

        handler = _handler(db_session, _EmptyDirectory(db_session))

        with pytest.raises(MemberNotFoundError):
            await handler.handle(_TOKEN, RequestContext(method="GET", request_uri=_URI))

        assert await _token_rows(db_session) == []

    async def test_concurrent_consume_single_winner(self, db_engine, login_token):
        factory = async_sessionmaker(
            db_engine, class_=AsyncSession, expire_on_commit=False
        )

        async def _attempt() -> bool:
            async with factory() as session:
                store = SqlTokenStore(session)
                found = await store.find_valid(hash_token(_TOKEN), _NOW)
                if found is None:
                    return False
                return await store.consume(found)

        results = await asyncio.gather(*(_attempt() for _ in range(5)))

        assert results.count(True) == 1


# ---------------------------------------------------------------------------
# Maintenance scripts
# ---------------------------------------------------------------------------


class TestScripts:
    async def test_purge_removes_only_expired(self, db_session, member, login_token):
        await LoginTokenRepository.create(
            db_session,
            member_id=member.id,
            token_hash=hash_token("dead00"),
            expires=_NOW - 1,
        )

        deleted = await purge_expired_login_tokens(db_session, now=_NOW)

        assert deleted == 1
        assert len(await _token_rows(db_session)) == 1

    async def test_issue_for_username_returns_working_url(self, db_session, member):
        url = await issue_for_username(
            db_session, "jdoe", jump_to="/shop", ttl=timedelta(minutes=5)
        )

        plain = url.rsplit("/", 1)[1]
        rows = await _token_rows(db_session)
        assert len(rows) == 1
        assert rows[0].token == hash_token(plain)
        assert rows[0].token != plain
        assert rows[0].jump_to == "/shop"

    async def test_issue_for_unknown_username(self, db_session):
        with pytest.raises(UnknownMemberError):
            await issue_for_username(db_session, "nobody")

    async def test_issued_tokens_are_unique(self, db_session, member):
        first = await issue_login_token(db_session, member_id=member.id)
        second = await issue_login_token(db_session, member_id=member.id)

        assert first != second
