"""Setup and teardown of temporary admin fixtures around a workflow."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, TYPE_CHECKING

from .models import Reference

if TYPE_CHECKING:
    from .client import DirectorClient

logger = logging.getLogger(__name__)


class LifecycleState:
    NOT_SETUP = "not_setup"
    SETUP_IN_PROGRESS = "setup_in_progress"
    SETUP_COMPLETE = "setup_complete"
    SETUP_FAILED = "setup_failed"
    TEARDOWN_ATTEMPTED = "teardown_attempted"


@dataclass
class FixtureSpec:
    """What to create for a workflow."""
    org: str | Reference
    metadata_key: str = "KEY"
    metadata_value: str = "VALUE"
    catalog_name: str | None = None
    catalog_description: str | None = "created by lifecycle setup"

    def resolved_catalog_name(self) -> str:
        if self.catalog_name:
            return self.catalog_name
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        return f"Test Catalog {stamp}"


@dataclass
class FixtureState:
    """Which fixtures exist, recorded as each one is confirmed."""
    org_locator: str | None = None
    metadata_key: str | None = None
    metadata_written: bool = False
    catalog_id: str | None = None
    catalog_locator: str | None = None

    @property
    def catalog_created(self) -> bool:
        return self.catalog_id is not None


@dataclass
class LifecycleResult:
    """Final state of a lifecycle run."""
    state: str
    fixtures: FixtureState
    result: Any = None
    teardown_errors: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """True when every teardown step succeeded."""
        return not self.teardown_errors


class LifecycleCoordinator:
    """
    Creates a metadata entry and a catalog on an org, then removes them.

    Setup stops at the first failure and re-raises it. Teardown releases
    whatever was confirmed created; each step is isolated and its failure
    is logged and collected, never raised.

    Usage:
        coordinator = LifecycleCoordinator(client.as_admin())
        with coordinator.scoped(FixtureSpec(org=org_ref)) as fixtures:
            ...
        print(coordinator.teardown_errors)
    """

    def __init__(self, client: DirectorClient):
        self._client = client
        self.state = LifecycleState.NOT_SETUP
        self.fixtures = FixtureState()
        self.teardown_errors: list[str] = []

    def setup(self, spec: FixtureSpec) -> FixtureState:
        """
        Create the fixtures described by spec.

        Raises:
            PrivilegeError: If the client is not admin-scoped
            TaskFailedError: If a creation task does not succeed
        """
        if self.state != LifecycleState.NOT_SETUP:
            raise RuntimeError(f"setup() called in state {self.state}")
        self._client.context.require_admin("lifecycle setup")
        self.state = LifecycleState.SETUP_IN_PROGRESS

        try:
            resolver = self._client.resolver
            org_locator = resolver.to_admin_locator(resolver.resolve_any(spec.org))
            self.fixtures.org_locator = org_locator

            task = self._client.metadata.put_entry(org_locator, spec.metadata_key, spec.metadata_value)
            self._client.tasks.wait(task).raise_for_status()
            self.fixtures.metadata_key = spec.metadata_key
            self.fixtures.metadata_written = True

            catalog = self._client.catalogs.create_in_org(
                org_locator, spec.resolved_catalog_name(), spec.catalog_description
            )
            # The catalog exists server-side from here on, even if its task fails
            self.fixtures.catalog_id = catalog.identifier
            self.fixtures.catalog_locator = catalog.locator
            for outcome in self._client.tasks.wait_all(catalog.tasks):
                outcome.raise_for_status()
        except Exception:
            self.state = LifecycleState.SETUP_FAILED
            raise

        self.state = LifecycleState.SETUP_COMPLETE
        logger.info(f"Fixtures ready on {org_locator}: catalog {self.fixtures.catalog_id}")
        return self.fixtures

    def teardown(self) -> list[str]:
        """Best-effort removal of every fixture marked created."""
        if self.state == LifecycleState.NOT_SETUP:
            return self.teardown_errors
        if self.state == LifecycleState.TEARDOWN_ATTEMPTED:
            return self.teardown_errors

        fixtures = self.fixtures
        if fixtures.metadata_written:
            self._release(
                f"metadata entry {fixtures.metadata_key!r} on {fixtures.org_locator}",
                lambda: self._client.metadata.delete_entry(fixtures.org_locator, fixtures.metadata_key),
            )
        if fixtures.catalog_created:
            self._release(
                f"catalog {fixtures.catalog_id}",
                lambda: self._client.catalogs.delete(fixtures.catalog_locator or fixtures.catalog_id),
            )

        self.state = LifecycleState.TEARDOWN_ATTEMPTED
        return self.teardown_errors

    def _release(self, what: str, delete: Callable[[], Any]) -> None:
        try:
            self._client.tasks.wait(delete()).raise_for_status()
        except Exception as e:
            message = f"Error deleting {what}: {e}"
            logger.warning(message)
            self.teardown_errors.append(message)
        else:
            logger.debug(f"Deleted {what}")

    @contextmanager
    def scoped(self, spec: FixtureSpec) -> Iterator[FixtureState]:
        """Set up fixtures for the body of a with-block and always tear them down."""
        try:
            yield self.setup(spec)
        finally:
            self.teardown()

    def run(
        self,
        spec: FixtureSpec,
        body: Callable[[FixtureState], Any] | None = None,
    ) -> LifecycleResult:
        """
        Setup, run body, teardown.

        Setup and body failures propagate after teardown has run; teardown
        failures only show up in LifecycleResult.teardown_errors.
        """
        with self.scoped(spec) as fixtures:
            result = body(fixtures) if body is not None else None
        return LifecycleResult(
            state=self.state,
            fixtures=self.fixtures,
            result=result,
            teardown_errors=list(self.teardown_errors),
        )
