"""Request authentication for the director client.

The session handshake happens elsewhere; this module only turns a token
that was already issued into request headers.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

SESSION_HEADER = "x-vcloud-authorization"

# Empty dict singleton - avoid allocation on hot path
_EMPTY_HEADERS: dict[str, str] = {}


class AuthMethod:
    SESSION = "session"
    BEARER = "bearer"


def find_session_token(config: ClientConfig) -> str | None:
    """
    Locate the session token.

    Checked in order: `session_token`, the environment variable named by
    `session_token_env`, then the contents of `session_token_file`.
    """
    if config.session_token:
        return config.session_token

    if config.session_token_env:
        token = os.environ.get(config.session_token_env)
        if token:
            return token

    if config.session_token_file:
        try:
            token = Path(config.session_token_file).read_text().strip()
        except OSError as e:
            logger.warning(f"Cannot read session token file {config.session_token_file}: {e}")
            return None
        return token or None

    return None


@dataclass
class ClientAuth:
    """Builds auth headers, reusing the last dict while the token is unchanged."""

    _cached_for: tuple[str, str] | None = field(default=None, repr=False)
    _cached: dict[str, str] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_auth_headers(self, config: ClientConfig) -> dict[str, str]:
        """
        Headers carrying the configured credential.

        Returns an empty dict when no auth method is configured, or when
        the configured method has no token to send.
        """
        method = config.auth_method
        if not method:
            return _EMPTY_HEADERS

        if method == AuthMethod.SESSION:
            token = find_session_token(config)
        elif method == AuthMethod.BEARER:
            token = config.bearer_token
        else:
            logger.warning(f"Unknown auth method: {method}")
            return _EMPTY_HEADERS

        if not token:
            logger.warning(f"Auth method {method!r} configured but no token found")
            return _EMPTY_HEADERS

        with self._lock:
            if self._cached_for != (method, token):
                if method == AuthMethod.SESSION:
                    self._cached = {SESSION_HEADER: token}
                else:
                    self._cached = {"Authorization": f"Bearer {token}"}
                self._cached_for = (method, token)
            return self._cached


# Default instance
_client_auth = ClientAuth()


def get_auth_headers(config: ClientConfig) -> dict[str, str]:
    """Get authentication headers for the given config."""
    return _client_auth.get_auth_headers(config)
