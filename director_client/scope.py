"""Privilege context: the user and admin views of the same directory."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Callable, TypeVar, TYPE_CHECKING

from .exceptions import InvalidScopeError, PrivilegeError

if TYPE_CHECKING:
    from .config import ClientConfig

F = TypeVar("F", bound=Callable)


class Scope:
    USER = "user"
    ADMIN = "admin"

    ALL = frozenset({USER, ADMIN})


@dataclass(frozen=True)
class PrivilegeContext:
    """
    Base locator prefixes for both scopes plus the active scope.

    The admin prefix normally extends the user prefix
    (".../api/" and ".../api/admin/"), so admin is matched first.
    Instances are immutable; a client never switches scope mid-flow.
    """
    user_prefix: str
    admin_prefix: str
    scope: str = Scope.USER

    def __post_init__(self) -> None:
        if self.scope not in Scope.ALL:
            raise ValueError(f"Unknown scope {self.scope!r}, expected one of {sorted(Scope.ALL)}")
        for prefix in (self.user_prefix, self.admin_prefix):
            if not prefix.endswith("/"):
                raise ValueError(f"Locator prefix must end with '/': {prefix!r}")
        if self.user_prefix == self.admin_prefix:
            raise ValueError("User and admin prefixes must differ")

    @classmethod
    def from_config(cls, config: ClientConfig) -> PrivilegeContext:
        return cls(
            user_prefix=config.user_prefix,
            admin_prefix=config.admin_prefix,
            scope=config.scope,
        )

    @property
    def is_admin(self) -> bool:
        return self.scope == Scope.ADMIN

    @property
    def base_prefix(self) -> str:
        """Prefix used to build locators in the active scope."""
        return self.admin_prefix if self.is_admin else self.user_prefix

    def scope_of(self, locator: str) -> str:
        """
        Which scope a locator belongs to.

        Raises:
            InvalidScopeError: If the locator matches neither prefix
        """
        if locator.startswith(self.admin_prefix):
            return Scope.ADMIN
        if locator.startswith(self.user_prefix):
            return Scope.USER
        raise InvalidScopeError(locator, (self.user_prefix, self.admin_prefix))

    def require_admin(self, operation: str) -> None:
        """Reject an admin-only operation when the active scope is user."""
        if not self.is_admin:
            raise PrivilegeError(operation, self.scope)

    def check_access(self, locator: str) -> None:
        """Reject admin locators from a user-scoped client before any request."""
        if self.scope_of(locator) == Scope.ADMIN:
            self.require_admin(f"access {locator}")


def requires_admin(method: F) -> F:
    """
    Mark an API method as admin-only.

    The decorated method's owner must expose the client as `_client`.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._client.context.require_admin(method.__qualname__)
        return method(self, *args, **kwargs)
    return wrapper  # type: ignore[return-value]
