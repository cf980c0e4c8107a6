"""Organization operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import EntityKind, Org, Reference, deserialize

if TYPE_CHECKING:
    from .client import DirectorClient


class OrgApi:
    """List and fetch organizations."""

    def __init__(self, client: DirectorClient):
        self._client = client

    def list(self) -> list[Reference]:
        """References to every organization visible to the session."""
        data = self._client.transport.get(f"{self._client.context.user_prefix}org")
        return deserialize(data, EntityKind.ORG_LIST)

    def get(self, org: str | Reference) -> Org:
        """Fetch an organization by identifier, locator or Reference."""
        locator = self._client.resolver.resolve_in_scope(org)
        return deserialize(self._client.transport.get(locator), EntityKind.ORG)

    def catalogs(self, org: str | Reference) -> list[Reference]:
        """References to the catalogs of an organization, as currently stored."""
        return self.get(org).catalogs
