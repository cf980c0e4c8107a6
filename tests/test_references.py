"""Tests for references, locator derivation and scope rewriting."""

from __future__ import annotations

import dataclasses
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from director_client import InvalidScopeError, NotFoundError, Reference
from director_client.references import ReferenceResolver
from director_client.scope import PrivilegeContext

USER = "http://mock/api/"
ADMIN = "http://mock/api/admin/"


def make_resolver(scope: str = "user") -> ReferenceResolver:
    return ReferenceResolver(PrivilegeContext(USER, ADMIN, scope))


class TestReference:
    """Reference construction invariants."""

    def test_requires_identifier_or_locator(self):
        with pytest.raises(ValueError, match="identifier or a locator"):
            Reference()

    def test_rejects_malformed_identifier(self):
        with pytest.raises(ValueError, match="Malformed identifier"):
            Reference(identifier="org-42")

    def test_urn_parts(self):
        ref = Reference(identifier="urn:vcloud:org:abc-123")
        assert ref.urn_kind == "org"
        assert ref.uuid == "abc-123"

    def test_locator_only_reference_has_no_urn_parts(self):
        ref = Reference(locator=f"{USER}org/abc")
        assert ref.urn_kind is None
        assert ref.uuid is None

    def test_is_immutable(self):
        ref = Reference(identifier="urn:vcloud:org:abc")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ref.locator = f"{USER}org/abc"  # type: ignore[misc]


class TestResolve:
    """ReferenceResolver.resolve()."""

    def test_locator_returned_unchanged(self):
        resolver = make_resolver()
        ref = Reference(identifier="urn:vcloud:org:abc", locator=f"{USER}org/abc")
        assert resolver.resolve(ref) == f"{USER}org/abc"

    def test_structural_identifier_derived_without_lookup(self):
        resolver = make_resolver()
        ref = Reference(identifier="urn:vcloud:catalog:c-1")
        assert resolver.resolve(ref) == f"{USER}catalog/c-1"

    def test_admin_scope_derives_admin_locator(self):
        resolver = make_resolver("admin")
        ref = Reference(identifier="urn:vcloud:org:abc")
        assert resolver.resolve(ref) == f"{ADMIN}org/abc"

    def test_tasks_always_live_in_user_view(self):
        resolver = make_resolver("admin")
        assert resolver.locator_for("urn:vcloud:task:t-1") == f"{USER}task/t-1"

    def test_repeated_resolution_is_identical(self):
        resolver = make_resolver()
        ref = Reference(identifier="urn:vcloud:org:abc")
        assert resolver.resolve(ref) == resolver.resolve(ref)

    def test_resolve_any_accepts_strings(self):
        resolver = make_resolver()
        assert resolver.resolve_any(f"{USER}org/abc") == f"{USER}org/abc"
        assert resolver.resolve_any("urn:vcloud:org:abc") == f"{USER}org/abc"

    def test_non_structural_without_transport_raises(self):
        resolver = make_resolver()
        with pytest.raises(NotFoundError):
            resolver.locator_for("urn:vcloud:vapp:v-1")

    def test_non_structural_looked_up_once(self, user_client, mock_service):
        mock_service.add_entity("urn:vcloud:vapp:v-1", "http://mock/api/vApp/vapp-v-1")

        first = user_client.resolver.resolve(Reference(identifier="urn:vcloud:vapp:v-1"))
        second = user_client.resolver.resolve(Reference(identifier="urn:vcloud:vapp:v-1"))

        assert first == second == "http://mock/api/vApp/vapp-v-1"
        assert len(mock_service.get_calls("/entity/")) == 1

    def test_concurrent_resolution_makes_one_lookup(self, user_client, mock_service):
        mock_service.add_entity("urn:vcloud:vapp:v-2", "http://mock/api/vApp/vapp-v-2")

        def slow(request: httpx.Request) -> httpx.Response:
            time.sleep(0.05)
            return mock_service.route(request)

        mock_service.add_custom_handler(r"/api/entity/", slow)
        start = threading.Barrier(4)

        def resolve() -> str:
            start.wait()
            return user_client.resolver.locator_for("urn:vcloud:vapp:v-2")

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: resolve(), range(4)))

        assert set(results) == {"http://mock/api/vApp/vapp-v-2"}
        assert len(mock_service.get_calls("/entity/")) == 1

    def test_unknown_non_structural_identifier_raises(self, user_client):
        with pytest.raises(NotFoundError):
            user_client.resolver.locator_for("urn:vcloud:vm:missing")


class TestScopeRewrite:
    """to_admin_locator() / to_user_locator()."""

    def test_user_locator_rewritten_to_admin(self):
        resolver = make_resolver()
        assert resolver.to_admin_locator(f"{USER}org/abc") == f"{ADMIN}org/abc"

    def test_admin_locator_is_left_alone(self):
        resolver = make_resolver()
        once = resolver.to_admin_locator(f"{USER}org/abc")
        assert resolver.to_admin_locator(once) == once

    def test_round_trip_to_user(self):
        resolver = make_resolver()
        admin = resolver.to_admin_locator(f"{USER}catalog/c-1")
        assert resolver.to_user_locator(admin) == f"{USER}catalog/c-1"
        assert resolver.to_user_locator(f"{USER}catalog/c-1") == f"{USER}catalog/c-1"

    @pytest.mark.parametrize("locator", [
        "http://elsewhere/api/org/abc",
        "not a locator",
        "http://mock/apiorg/abc",
    ])
    def test_unrelated_locator_raises(self, locator):
        resolver = make_resolver()
        with pytest.raises(InvalidScopeError) as exc_info:
            resolver.to_admin_locator(locator)
        assert exc_info.value.locator == locator
