"""Main client class and convenience functions."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable

from .catalogs import CatalogApi
from .config import ClientConfig
from .lifecycle import FixtureSpec, FixtureState, LifecycleCoordinator, LifecycleResult
from .metadata import MetadataApi
from .models import Entity, EntityKind, Reference, Task
from .orgs import OrgApi
from .references import ReferenceResolver
from .scope import PrivilegeContext, Scope
from .tasks import TaskOutcome, TaskService
from .transport import Transport


@dataclass
class DirectorClient:
    """
    Client for the directory service.

    Usage:
        client = DirectorClient()
        orgs = client.list_entities("organization")
        org = client.get_entity("organization", orgs[0].locator)

        # Admin operations need an admin-scoped client
        admin = client.as_admin()
        outcome = admin.mutate_metadata(
            admin.resolver.to_admin_locator(org.locator), "KEY", "VALUE"
        )
        outcome.raise_for_status()

        # Or with custom config
        client = DirectorClient(config=ClientConfig(
            endpoint="https://vcd.example.com/api",
            auth_method="session",
        ))
    """
    config: ClientConfig = field(default_factory=ClientConfig)

    context: PrivilegeContext = field(init=False, repr=False, compare=False)
    transport: Transport = field(init=False, repr=False, compare=False)
    resolver: ReferenceResolver = field(init=False, repr=False, compare=False)
    tasks: TaskService = field(init=False, repr=False, compare=False)
    orgs: OrgApi = field(init=False, repr=False, compare=False)
    catalogs: CatalogApi = field(init=False, repr=False, compare=False)
    metadata: MetadataApi = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Scope is read once here and never changes for this client
        self.context = PrivilegeContext.from_config(self.config)
        self.transport = Transport(self.config, self.context)
        self.resolver = ReferenceResolver(self.context, self.transport)
        self.tasks = TaskService(self)
        self.orgs = OrgApi(self)
        self.catalogs = CatalogApi(self)
        self.metadata = MetadataApi(self)

    @property
    def scope(self) -> str:
        return self.context.scope

    def as_admin(self) -> DirectorClient:
        """A separate client with the same settings in admin scope."""
        if self.context.is_admin:
            return self
        return DirectorClient(config=dataclasses.replace(self.config, scope=Scope.ADMIN))

    def list_entities(self, kind: str) -> list[Reference]:
        """
        References to every entity of a kind.

        Catalog listings walk the visible organizations.
        """
        if kind == EntityKind.ORG:
            return self.orgs.list()
        if kind == EntityKind.CATALOG:
            refs: list[Reference] = []
            for org_ref in self.orgs.list():
                refs.extend(self.orgs.catalogs(org_ref))
            return refs
        raise ValueError(f"Cannot list entities of kind {kind!r}")

    def get_entity(self, kind: str, identifier_or_locator: str | Reference) -> Entity | Task:
        """Fetch an entity by identifier or locator; both forms give the same entity."""
        getters: dict[str, Callable[[str | Reference], Any]] = {
            EntityKind.ORG: self.orgs.get,
            EntityKind.CATALOG: self.catalogs.get,
            EntityKind.TASK: self.tasks.get,
        }
        getter = getters.get(kind)
        if getter is None:
            raise ValueError(f"Cannot get entities of kind {kind!r}")
        return getter(identifier_or_locator)

    def mutate_metadata(
        self,
        entity: str | Reference,
        key: str,
        value: str | None,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> TaskOutcome:
        """
        Write (value given) or delete (value None) one metadata entry and
        wait for the resulting task.
        """
        if value is None:
            task = self.metadata.delete_entry(entity, key)
        else:
            task = self.metadata.put_entry(entity, key, value)
        return self.tasks.wait(task, poll_interval=poll_interval, timeout=timeout)

    def run_lifecycle(
        self,
        spec: FixtureSpec,
        body: Callable[[FixtureState], Any] | None = None,
    ) -> LifecycleResult:
        """
        Create fixtures, run body against them, tear them down.

        Fixtures are admin operations, so the run always uses an
        admin-scoped client; this client's own scope is left unchanged.
        """
        return LifecycleCoordinator(self.as_admin()).run(spec, body)


# Module-level default client
_default_client: DirectorClient | None = None


def _get_client() -> DirectorClient:
    """Get or create the default client."""
    global _default_client
    if _default_client is None:
        _default_client = DirectorClient(config=ClientConfig.load())
    return _default_client


def list_entities(kind: str) -> list[Reference]:
    """
    List entities of a kind using the default client.

    Usage:
        from director_client import list_entities
        orgs = list_entities("organization")
    """
    return _get_client().list_entities(kind)


def get_entity(kind: str, identifier_or_locator: str | Reference) -> Entity | Task:
    """Fetch an entity using the default client."""
    return _get_client().get_entity(kind, identifier_or_locator)


def mutate_metadata(entity: str | Reference, key: str, value: str | None) -> TaskOutcome:
    """
    Write or delete a metadata entry and wait for it, using the default client.

    Usage:
        from director_client import mutate_metadata
        mutate_metadata(org_locator, "KEY", "VALUE").raise_for_status()
        mutate_metadata(org_locator, "KEY", None)  # delete
    """
    return _get_client().mutate_metadata(entity, key, value)


def run_lifecycle(spec: FixtureSpec, body: Callable[[FixtureState], Any] | None = None) -> LifecycleResult:
    """Run a fixture lifecycle using the default client."""
    return _get_client().run_lifecycle(spec, body)
