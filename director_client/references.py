"""Reference resolution: identifiers, locators and scope rewriting."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import NotFoundError
from .models import EntityKind, Reference, deserialize
from .scope import PrivilegeContext, Scope

if TYPE_CHECKING:
    from .transport import Transport

logger = logging.getLogger(__name__)

# URN kind -> path segment, for kinds whose locator is "<prefix><segment>/<uuid>"
STRUCTURAL_SEGMENTS: dict[str, str] = {
    "org": "org",
    "catalog": "catalog",
    "vdc": "vdc",
    "network": "network",
    "task": "task",
}

# Kinds that only exist in the user view
USER_ONLY_SEGMENTS = frozenset({"task"})


def is_locator(value: str) -> bool:
    return value.startswith(("http://", "https://"))


@dataclass
class ReferenceResolver:
    """
    Normalizes entity addressing between identifiers and locators.

    Locators are returned untouched. Identifiers of structural kinds are
    turned into locators without a round trip; anything else costs one
    lookup against the entity resolver, cached for the life of the resolver.
    """
    context: PrivilegeContext
    transport: Transport | None = None

    _lookups: dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _pending: dict[str, threading.Lock] = field(default_factory=dict, init=False, repr=False)

    def resolve(self, ref: Reference) -> str:
        """Locator for a reference."""
        if ref.locator:
            return ref.locator
        return self.locator_for(ref.identifier)

    def resolve_any(self, identifier_or_locator: str | Reference) -> str:
        """Locator for a Reference, a locator string, or an identifier string."""
        if isinstance(identifier_or_locator, Reference):
            return self.resolve(identifier_or_locator)
        if is_locator(identifier_or_locator):
            return identifier_or_locator
        return self.locator_for(identifier_or_locator)

    def resolve_in_scope(self, identifier_or_locator: str | Reference) -> str:
        """
        Locator in the active scope, whichever form was given.

        An admin client reads and writes through admin locators, so an
        identifier and the user locator of the same entity give the same target.
        """
        locator = self.resolve_any(identifier_or_locator)
        if self.context.is_admin:
            return self.to_admin_locator(locator)
        return locator

    def locator_for(self, identifier: str) -> str:
        """Derive or look up the locator of an identifier in the active scope."""
        ref = Reference(identifier=identifier)
        segment = STRUCTURAL_SEGMENTS.get(ref.urn_kind)
        if segment is not None:
            prefix = self.context.user_prefix if segment in USER_ONLY_SEGMENTS else self.context.base_prefix
            return f"{prefix}{segment}/{ref.uuid}"
        return self._lookup(identifier)

    def to_admin_locator(self, locator: str) -> str:
        """
        Rewrite a user-scope locator into its admin-scope counterpart.

        Admin locators are returned unchanged.

        Raises:
            InvalidScopeError: If the locator is in neither scope
        """
        if self.context.scope_of(locator) == Scope.ADMIN:
            return locator
        return self.context.admin_prefix + locator[len(self.context.user_prefix):]

    def to_user_locator(self, locator: str) -> str:
        """Rewrite an admin-scope locator into its user-scope counterpart."""
        if self.context.scope_of(locator) == Scope.USER:
            return locator
        return self.context.user_prefix + locator[len(self.context.admin_prefix):]

    def _lookup(self, identifier: str) -> str:
        with self._lock:
            cached = self._lookups.get(identifier)
            if cached is not None:
                return cached
            pending = self._pending.setdefault(identifier, threading.Lock())

        # One lookup per identifier; concurrent callers wait for it
        with pending:
            with self._lock:
                cached = self._lookups.get(identifier)
            if cached is not None:
                return cached

            if self.transport is None:
                raise NotFoundError(
                    f"Cannot derive a locator for {identifier} without a lookup",
                    kind=EntityKind.ENTITY,
                )

            lookup_locator = f"{self.context.user_prefix}entity/{identifier}"
            logger.debug(f"Looking up locator for {identifier}")
            links = deserialize(self.transport.get(lookup_locator), EntityKind.ENTITY)
            locators = [link.locator for link in links if link.locator]
            if not locators:
                raise NotFoundError(
                    f"Entity resolver returned no locator for {identifier}",
                    kind=EntityKind.ENTITY,
                    locator=lookup_locator,
                )

            with self._lock:
                self._lookups[identifier] = locators[0]
                self._pending.pop(identifier, None)
            return locators[0]
