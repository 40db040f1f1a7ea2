"""Token stores consulted by the token login handler.

Two implementations of the same contract:
- SqlTokenStore: the member_login_tokens table (production)
- InMemoryTokenStore: process-local dict for local runs and tests

Both make consume() the single correctness-critical step: of any number of
concurrent callers holding the same token, exactly one gets True.
"""

import threading
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.models.login_token import LoginToken
from token_login.repositories.login_token_repository import LoginTokenRepository


class TokenStore(Protocol):
    """Lookup and one-time consumption of login tokens."""

    async def find_valid(self, token_hash: str, now: int) -> LoginToken | None:
        """Return the token if present and ``expires >= now``."""
        ...

    async def consume(self, login_token: LoginToken) -> bool:
        """Delete the token; True only for the caller that removed it."""
        ...


class SqlTokenStore:
    """TokenStore backed by the member_login_tokens table.

    consume() commits immediately. A consumed token stays consumed even when
    the login that follows fails and the rest of the request rolls back.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def find_valid(self, token_hash: str, now: int) -> LoginToken | None:
        return await LoginTokenRepository.get_valid(
            self._db, token_hash=token_hash, now=now
        )

    async def consume(self, login_token: LoginToken) -> bool:
        removed = await LoginTokenRepository.consume(
            self._db, token_id=login_token.id, token_hash=login_token.token
        )
        await self._db.commit()
        return removed


class InMemoryTokenStore:
    """TokenStore kept in a process-local dict.

    Guarded by a threading lock, so it is safe under both the event loop and
    a threaded server. Not shared between processes.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, LoginToken] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(
        self,
        *,
        member_id: int,
        token_hash: str,
        expires: int,
        jump_to: str | None = None,
    ) -> LoginToken:
        """Store a token and assign it an id."""
        with self._lock:
            login_token = LoginToken(
                id=self._next_id,
                member_id=member_id,
                token=token_hash,
                expires=expires,
                jump_to=jump_to,
            )
            self._next_id += 1
            self._tokens[token_hash] = login_token
            return login_token

    def get(self, token_hash: str) -> LoginToken | None:
        """Return a token regardless of expiry (inspection helper)."""
        return self._tokens.get(token_hash)

    async def find_valid(self, token_hash: str, now: int) -> LoginToken | None:
        login_token = self._tokens.get(token_hash)
        if login_token is None or login_token.expires < now:
            return None
        return login_token

    async def consume(self, login_token: LoginToken) -> bool:
        with self._lock:
            current = self._tokens.get(login_token.token)
            if current is None or current.id != login_token.id:
                return False
            del self._tokens[login_token.token]
            return True

    def purge_expired(self, now: int) -> int:
        """Remove all tokens with ``expires < now``.

        Returns:
            Number of tokens removed.
        """
        with self._lock:
            expired = [
                token_hash
                for token_hash, login_token in self._tokens.items()
                if login_token.expires < now
            ]
            for token_hash in expired:
                del self._tokens[token_hash]
            return len(expired)

    def __len__(self) -> int:
        return len(self._tokens)
