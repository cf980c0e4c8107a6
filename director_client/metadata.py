"""Key/value metadata attached to directory entities."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from .exceptions import KeyNotFoundError, NotFoundError
from .models import EntityKind, Metadata, Reference, Task, deserialize

if TYPE_CHECKING:
    from .client import DirectorClient


class MetadataApi:
    """
    Read and write metadata entries of any entity.

    Writes return the Task tracking them; an entry is only guaranteed to be
    visible to reads once that task has succeeded.

    Usage:
        task = client.metadata.put_entry(org_locator, "KEY", "VALUE")
        client.tasks.wait(task).raise_for_status()
        client.metadata.get_value(org_locator, "KEY")  # "VALUE"
    """

    def __init__(self, client: DirectorClient):
        self._client = client

    def get_all(self, entity: str | Reference) -> Metadata:
        """
        All entries of an entity. An entity without entries gives an empty set.

        Raises:
            NotFoundError: If the entity does not exist
        """
        locator = self._client.resolver.resolve_in_scope(entity)
        data = self._client.transport.get(self._metadata_locator(locator))
        return Metadata(locator=locator, entries=deserialize(data, EntityKind.METADATA))

    def get_value(self, entity: str | Reference, key: str) -> str:
        """
        Value of one entry.

        Raises:
            KeyNotFoundError: If the key is absent
        """
        locator = self._client.resolver.resolve_in_scope(entity)
        try:
            data = self._client.transport.get(self._entry_locator(locator, key))
        except NotFoundError as e:
            raise KeyNotFoundError(key, locator) from e
        return deserialize(data, EntityKind.METADATA_VALUE)

    def put_entry(self, entity: str | Reference, key: str, value: str) -> Task:
        """Create or overwrite an entry."""
        if not key:
            raise ValueError("Metadata key must not be empty")
        locator = self._client.resolver.resolve_in_scope(entity)
        return self._client.tasks.submit(
            "PUT", self._entry_locator(locator, key), {"value": str(value)}
        )

    def delete_entry(self, entity: str | Reference, key: str) -> Task:
        """
        Remove an entry.

        Raises:
            KeyNotFoundError: If the key never existed
        """
        locator = self._client.resolver.resolve_in_scope(entity)
        try:
            return self._client.tasks.submit("DELETE", self._entry_locator(locator, key))
        except NotFoundError as e:
            raise KeyNotFoundError(key, locator) from e

    @staticmethod
    def _metadata_locator(locator: str) -> str:
        return f"{locator.rstrip('/')}/metadata"

    @classmethod
    def _entry_locator(cls, locator: str, key: str) -> str:
        return f"{cls._metadata_locator(locator)}/{quote(key, safe='')}"
