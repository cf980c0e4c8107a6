"""Client for a multi-tenant virtualization directory service.

Usage:
    from director_client import DirectorClient, ClientConfig

    client = DirectorClient(config=ClientConfig(endpoint="https://vcd.example.com/api"))
    for ref in client.list_entities("organization"):
        print(ref.name, ref.locator)
"""

from .client import (
    DirectorClient,
    get_entity,
    list_entities,
    mutate_metadata,
    run_lifecycle,
)
from .config import ClientConfig
from .exceptions import (
    DirectorError,
    InvalidScopeError,
    KeyNotFoundError,
    MalformedResponseError,
    NotFoundError,
    PrivilegeError,
    TaskFailedError,
    TaskTimeoutError,
    TransportError,
)
from .lifecycle import (
    FixtureSpec,
    FixtureState,
    LifecycleCoordinator,
    LifecycleResult,
    LifecycleState,
)
from .models import (
    Catalog,
    Entity,
    EntityKind,
    Metadata,
    Org,
    Reference,
    Task,
    TaskError,
    TaskStatus,
)
from .scope import PrivilegeContext, Scope
from .tasks import TaskOutcome

__all__ = [
    "DirectorClient",
    "ClientConfig",
    "get_entity",
    "list_entities",
    "mutate_metadata",
    "run_lifecycle",
    "DirectorError",
    "InvalidScopeError",
    "KeyNotFoundError",
    "MalformedResponseError",
    "NotFoundError",
    "PrivilegeError",
    "TaskFailedError",
    "TaskTimeoutError",
    "TransportError",
    "FixtureSpec",
    "FixtureState",
    "LifecycleCoordinator",
    "LifecycleResult",
    "LifecycleState",
    "Catalog",
    "Entity",
    "EntityKind",
    "Metadata",
    "Org",
    "Reference",
    "Task",
    "TaskError",
    "TaskStatus",
    "PrivilegeContext",
    "Scope",
    "TaskOutcome",
]
