"""Interactive login notification.

The token login handler dispatches an InteractiveLoginEvent once a session
has been established and before the response is built. Listeners run in
registration order and are awaited one after another. A listener that raises
aborts the login response; errors are not swallowed because listeners may
enforce security checks of their own.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.core.security import (
    AuthenticatedCredential,
    FrontendUser,
    RequestContext,
)
from token_login.repositories.member_repository import MemberRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractiveLoginEvent:
    """A session was just established through direct user interaction.

    Attributes:
        context: Request the login happened on.
        credential: The newly installed credential.
    """

    context: RequestContext
    credential: AuthenticatedCredential


LoginListener = Callable[[InteractiveLoginEvent], Awaitable[None]]


class LoginEventDispatcher:
    """Synchronous (awaited) fan-out of interactive login events."""

    def __init__(self) -> None:
        self._listeners: list[LoginListener] = []

    def add_listener(self, listener: LoginListener) -> None:
        """Register a listener; it runs after all earlier registrations."""
        self._listeners.append(listener)

    async def dispatch(self, event: InteractiveLoginEvent) -> None:
        """Deliver an event to every listener in order.

        Raises:
            Exception: Whatever a listener raises, unchanged.
        """
        for listener in self._listeners:
            await listener(event)


class LoginTimestampListener:
    """Records last/current login times on the member row."""

    def __init__(
        self, db: AsyncSession, clock: Callable[[], float] = time.time
    ) -> None:
        self._db = db
        self._clock = clock

    async def __call__(self, event: InteractiveLoginEvent) -> None:
        user = event.credential.user
        if not isinstance(user, FrontendUser):
            return
        await MemberRepository.record_login(
            self._db, user.member_id, now=int(self._clock())
        )


async def log_interactive_login(event: InteractiveLoginEvent) -> None:
    """Audit line for every interactive login."""
    logger.info(
        "Interactive login: user=%s context=%s client=%s",
        event.credential.user.identifier,
        event.credential.context,
        event.context.client_host or "-",
    )
