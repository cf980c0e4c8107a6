"""Domain objects returned by the director service, and their deserializers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from .exceptions import MalformedResponseError

URN_PATTERN = re.compile(r"^urn:vcloud:(?P<kind>[A-Za-z]+):(?P<uuid>[0-9A-Za-z-]+)$")


class EntityKind:
    """Type tags carried by references and payloads."""
    ORG = "organization"
    CATALOG = "catalog"
    TASK = "task"
    ORG_LIST = "orgList"
    METADATA = "metadata"
    METADATA_VALUE = "metadataValue"
    ENTITY = "entity"


class TaskStatus:
    """Server-reported task states."""
    QUEUED = "queued"
    PRE_RUNNING = "preRunning"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "canceled"
    ABORTED = "aborted"

    TERMINAL = frozenset({SUCCESS, ERROR, CANCELLED, ABORTED})
    FAILED = frozenset({ERROR, CANCELLED, ABORTED})
    ALL = frozenset({QUEUED, PRE_RUNNING, RUNNING}) | TERMINAL


@dataclass(frozen=True)
class Reference:
    """
    Pointer to an entity, by identifier and/or locator.

    Usage:
        ref = Reference(identifier="urn:vcloud:org:1f2e...")
        ref = Reference(locator="https://vcd.example.com/api/org/1f2e...")
    """
    identifier: str | None = None
    locator: str | None = None
    type: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.identifier and not self.locator:
            raise ValueError("Reference needs an identifier or a locator")
        if self.identifier and not URN_PATTERN.match(self.identifier):
            raise ValueError(f"Malformed identifier: {self.identifier!r}")

    @property
    def urn_kind(self) -> str | None:
        """Kind segment of the identifier URN, e.g. 'org'."""
        if not self.identifier:
            return None
        return URN_PATTERN.match(self.identifier).group("kind")

    @property
    def uuid(self) -> str | None:
        if not self.identifier:
            return None
        return URN_PATTERN.match(self.identifier).group("uuid")


@dataclass
class Entity:
    """Common shape of every directory entity."""
    reference: Reference
    name: str
    description: str | None = None

    @property
    def identifier(self) -> str | None:
        return self.reference.identifier

    @property
    def locator(self) -> str | None:
        return self.reference.locator


@dataclass
class Org(Entity):
    """An organization (tenant)."""
    full_name: str | None = None
    catalogs: list[Reference] = field(default_factory=list)


@dataclass(frozen=True)
class TaskError:
    """Error detail the server attaches to a failed task."""
    message: str
    major_error_code: int | None = None
    minor_error_code: str | None = None


@dataclass(frozen=True)
class Task:
    """Handle on one asynchronous server-side operation."""
    reference: Reference
    status: str
    operation: str | None = None
    operation_name: str | None = None
    owner: Reference | None = None
    error: TaskError | None = None

    @property
    def locator(self) -> str | None:
        return self.reference.locator

    @property
    def is_terminal(self) -> bool:
        return self.status in TaskStatus.TERMINAL


@dataclass
class Catalog(Entity):
    """A catalog belonging to an organization."""
    is_published: bool = False
    items: list[Reference] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)


@dataclass
class Metadata:
    """Key/value metadata attached to one entity."""
    locator: str
    entries: dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> str:
        return self.entries[key]


# =============================================================================
# Deserialization
# =============================================================================


def _reference(data: dict[str, Any]) -> Reference:
    return Reference(
        identifier=data.get("id"),
        locator=data.get("href"),
        type=data.get("type"),
        name=data.get("name"),
    )


def _references(items: list[dict[str, Any]] | None) -> list[Reference]:
    return [_reference(item) for item in items or []]


def _org(data: dict[str, Any]) -> Org:
    return Org(
        reference=_reference(data),
        name=data["name"],
        description=data.get("description"),
        full_name=data.get("fullName"),
        catalogs=_references(data.get("catalogs")),
    )


def _task(data: dict[str, Any]) -> Task:
    status = data["status"]
    if status not in TaskStatus.ALL:
        raise ValueError(f"unknown task status {status!r}")
    error = data.get("error")
    owner = data.get("owner")
    return Task(
        reference=_reference(data),
        status=status,
        operation=data.get("operation"),
        operation_name=data.get("operationName"),
        owner=_reference(owner) if owner else None,
        error=TaskError(
            message=error.get("message", ""),
            major_error_code=error.get("majorErrorCode"),
            minor_error_code=error.get("minorErrorCode"),
        ) if error else None,
    )


def _catalog(data: dict[str, Any]) -> Catalog:
    return Catalog(
        reference=_reference(data),
        name=data["name"],
        description=data.get("description"),
        is_published=data.get("isPublished", False),
        items=_references(data.get("items")),
        tasks=[_task(t) for t in data.get("tasks", [])],
    )


def _org_list(data: dict[str, Any]) -> list[Reference]:
    return _references(data["references"])


def _metadata(data: dict[str, Any]) -> dict[str, str]:
    entries = {}
    for entry in data.get("entries", []):
        entries[entry["key"]] = str(entry["value"])
    return entries


def _metadata_value(data: dict[str, Any]) -> str:
    return str(data["value"])


def _entity_links(data: dict[str, Any]) -> list[Reference]:
    return [
        _reference(link) for link in data.get("links", [])
        if link.get("rel") == "alternate"
    ]


_PARSERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    EntityKind.ORG: _org,
    EntityKind.CATALOG: _catalog,
    EntityKind.TASK: _task,
    EntityKind.ORG_LIST: _org_list,
    EntityKind.METADATA: _metadata,
    EntityKind.METADATA_VALUE: _metadata_value,
    EntityKind.ENTITY: _entity_links,
}


def deserialize(payload: Any, kind: str) -> Any:
    """
    Turn a decoded JSON payload into a typed value.

    Args:
        payload: Decoded response body
        kind: One of the EntityKind tags

    Returns:
        The typed value for that kind

    Raises:
        MalformedResponseError: If the payload does not match the kind's shape
    """
    parser = _PARSERS.get(kind)
    if parser is None:
        raise ValueError(f"No deserializer for kind {kind!r}")
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected a {kind} object, got {type(payload).__name__}",
            kind=kind,
            payload=payload,
        )
    try:
        return parser(payload)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedResponseError(
            f"Malformed {kind} payload: {e}",
            kind=kind,
            payload=payload,
        ) from e
