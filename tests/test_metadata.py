"""Tests for reading and writing entity metadata."""

from __future__ import annotations

import pytest

from director_client import (
    KeyNotFoundError,
    NotFoundError,
    PrivilegeError,
    TransportError,
)

from tests.fixtures.mock_service import BASE, ORG_ID

ORG_URN = f"urn:vcloud:org:{ORG_ID}"


class TestRead:
    """MetadataApi reads in user scope."""

    def test_get_all(self, user_client):
        metadata = user_client.metadata.get_all(ORG_URN)

        assert metadata.locator == f"{BASE}/org/{ORG_ID}"
        assert metadata.entries == {"KEY": "VALUE"}
        assert "KEY" in metadata
        assert metadata["KEY"] == "VALUE"

    def test_entity_without_entries_gives_empty_set(self, user_client):
        globex = next(ref for ref in user_client.orgs.list() if ref.name == "globex")

        metadata = user_client.metadata.get_all(globex)

        assert len(metadata) == 0

    def test_missing_entity(self, user_client):
        with pytest.raises(NotFoundError):
            user_client.metadata.get_all("urn:vcloud:org:00000000-0000-0000-0000-000000000000")

    def test_get_value_by_identifier_and_locator(self, user_client):
        assert user_client.metadata.get_value(ORG_URN, "KEY") == "VALUE"
        assert user_client.metadata.get_value(f"{BASE}/org/{ORG_ID}", "KEY") == "VALUE"

    def test_missing_key(self, user_client):
        with pytest.raises(KeyNotFoundError) as exc_info:
            user_client.metadata.get_value(ORG_URN, "NOPE")

        assert exc_info.value.key == "NOPE"
        assert isinstance(exc_info.value, NotFoundError)


class TestWrite:
    """Metadata writes go through tasks in admin scope."""

    def test_write_then_read(self, admin_client, user_client):
        outcome = admin_client.mutate_metadata(ORG_URN, "OWNER", "ops-team")

        assert outcome.succeeded
        assert user_client.metadata.get_value(ORG_URN, "OWNER") == "ops-team"
        assert admin_client.metadata.get_value(ORG_URN, "OWNER") == "ops-team"

    def test_entry_not_visible_before_task_succeeds(self, admin_client):
        task = admin_client.metadata.put_entry(ORG_URN, "PENDING", "soon")

        with pytest.raises(KeyNotFoundError):
            admin_client.metadata.get_value(ORG_URN, "PENDING")

        admin_client.tasks.wait(task).raise_for_status()
        assert admin_client.metadata.get_value(ORG_URN, "PENDING") == "soon"

    def test_write_targets_admin_view(self, admin_client, mock_service):
        admin_client.mutate_metadata(ORG_URN, "KEY", "NEW")

        (call,) = mock_service.get_calls(method="PUT")
        assert call[1] == f"{BASE}/admin/org/{ORG_ID}/metadata/KEY"

    def test_overwrite_existing_key(self, admin_client, mock_service):
        admin_client.mutate_metadata(ORG_URN, "KEY", "REPLACED").raise_for_status()

        assert mock_service.metadata[f"org/{ORG_ID}"] == {"KEY": "REPLACED"}

    def test_key_with_space(self, admin_client):
        admin_client.mutate_metadata(ORG_URN, "cost center", "42").raise_for_status()

        assert admin_client.metadata.get_value(ORG_URN, "cost center") == "42"

    def test_empty_key_rejected(self, admin_client, mock_service):
        with pytest.raises(ValueError):
            admin_client.metadata.put_entry(ORG_URN, "", "x")
        assert mock_service.call_log == []

    def test_failed_write_is_not_applied(self, admin_client, mock_service):
        mock_service.next_task_statuses = ["error"]

        outcome = admin_client.mutate_metadata(ORG_URN, "KEY", "BROKEN")

        assert outcome.error is not None
        assert mock_service.metadata[f"org/{ORG_ID}"]["KEY"] == "VALUE"

    def test_delete(self, admin_client, mock_service):
        outcome = admin_client.mutate_metadata(ORG_URN, "KEY", None)

        assert outcome.succeeded
        assert "KEY" not in mock_service.metadata[f"org/{ORG_ID}"]
        with pytest.raises(KeyNotFoundError):
            admin_client.metadata.get_value(ORG_URN, "KEY")

    def test_delete_missing_key(self, admin_client):
        with pytest.raises(KeyNotFoundError):
            admin_client.metadata.delete_entry(ORG_URN, "NEVER_SET")

    def test_user_client_refused_admin_locator(self, user_client, mock_service):
        with pytest.raises(PrivilegeError):
            user_client.metadata.put_entry(f"{BASE}/admin/org/{ORG_ID}", "KEY", "X")
        assert mock_service.call_log == []

    def test_user_view_of_org_metadata_is_read_only(self, user_client, mock_service):
        with pytest.raises(TransportError) as exc_info:
            user_client.metadata.put_entry(ORG_URN, "KEY", "X")

        assert exc_info.value.status_code == 403
        # Mutations are sent once
        assert len(mock_service.get_calls(method="PUT")) == 1
