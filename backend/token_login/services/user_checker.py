"""Account status checks run before a principal may log in.

Pre-auth checks cover state an administrator sets (lock, disable, activation
start). Post-auth checks cover state that depends on the moment of login
(activation window end). Any failure raises an AccountStatusError subclass.
"""

import time
from collections.abc import Callable

from token_login.core.security import FrontendUser, Principal


class AccountStatusError(Exception):
    """Base class for account status failures."""


class AccountLockedError(AccountStatusError):
    """Account is temporarily locked."""


class AccountDisabledError(AccountStatusError):
    """Account is disabled or barred from logging in."""


class AccountNotYetActiveError(AccountStatusError):
    """Account activation window has not started yet."""


class AccountExpiredError(AccountStatusError):
    """Account activation window has ended."""


class UserChecker:
    """Validates that a front-end principal is allowed to authenticate.

    Principals that are not FrontendUser carry no account status and pass.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def check_pre_auth(self, user: Principal) -> None:
        """Run checks that apply before authentication.

        Raises:
            AccountLockedError: If locked_until lies in the future.
            AccountDisabledError: If disabled or login is not allowed.
            AccountNotYetActiveError: If start lies in the future.
        """
        if not isinstance(user, FrontendUser):
            return

        now = int(self._clock())
        if user.locked_until > now:
            raise AccountLockedError(f"Account {user.identifier!r} is locked")
        if user.disabled or not user.login_allowed:
            raise AccountDisabledError(f"Account {user.identifier!r} is disabled")
        if user.start is not None and user.start > now:
            raise AccountNotYetActiveError(
                f"Account {user.identifier!r} is not active yet"
            )

    def check_post_auth(self, user: Principal) -> None:
        """Run checks that apply after authentication.

        Raises:
            AccountExpiredError: If stop has been reached.
        """
        if not isinstance(user, FrontendUser):
            return

        now = int(self._clock())
        if user.stop is not None and user.stop <= now:
            raise AccountExpiredError(f"Account {user.identifier!r} has expired")
