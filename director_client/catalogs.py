"""Catalog operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import Catalog, EntityKind, Reference, Task, deserialize
from .scope import requires_admin

if TYPE_CHECKING:
    from .client import DirectorClient


class CatalogApi:
    """
    Fetch, create and delete catalogs.

    Creation and deletion are admin operations and are refused up front
    by a user-scoped client.
    """

    def __init__(self, client: DirectorClient):
        self._client = client

    def get(self, catalog: str | Reference) -> Catalog:
        """Fetch a catalog by identifier, locator or Reference."""
        locator = self._client.resolver.resolve_in_scope(catalog)
        return deserialize(self._client.transport.get(locator), EntityKind.CATALOG)

    @requires_admin
    def create_in_org(
        self,
        org: str | Reference,
        name: str,
        description: str | None = None,
    ) -> Catalog:
        """
        Create a catalog under an organization.

        The returned catalog carries the creation task in `tasks`;
        wait for it before relying on the catalog.
        """
        if not name:
            raise ValueError("Catalog name must not be empty")
        resolver = self._client.resolver
        org_locator = resolver.to_admin_locator(resolver.resolve_any(org))
        data = self._client.transport.post(
            f"{org_locator.rstrip('/')}/catalogs",
            {"name": name, "description": description},
        )
        return deserialize(data, EntityKind.CATALOG)

    @requires_admin
    def delete(self, catalog: str | Reference) -> Task:
        """Delete a catalog; returns the task tracking the deletion."""
        resolver = self._client.resolver
        locator = resolver.to_admin_locator(resolver.resolve_any(catalog))
        return self._client.tasks.submit("DELETE", locator)
