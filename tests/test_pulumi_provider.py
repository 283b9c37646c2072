"""Tests for the Pulumi dynamic provider for Airflow users.

This module tests:
- Input validation in check()
- Create/read/update/delete results handed back to Pulumi
- Import through read() with only an id
- Which changes replace and which update in place
"""

import pytest
from pulumi.runtime import rpc

from airflow_users.errors import CreateError
from airflow_users.pulumi_providers import AirflowUserProvider, set_reconciler
from airflow_users.pulumi_providers.user import get_reconciler


@pytest.fixture(autouse=True)
def shared_reconciler(reconciler):
    """Install the in-memory reconciler for the provider process."""
    set_reconciler(reconciler)
    yield reconciler
    set_reconciler(None)


@pytest.fixture
def provider():
    return AirflowUserProvider()


@pytest.fixture
def props():
    """Provide resource inputs as Pulumi hands them to the provider."""
    return {
        "__provider": "serialized-provider",
        "email": "a@x.com",
        "username": "a@x.com",
        "first_name": "A",
        "last_name": "X",
        "password": "p",
        "roles": ["Admin"],
        "active": None,
        "failed_login_count": None,
        "login_count": None,
        "last_login": None,
    }


class TestCheck:
    """Tests for validating inputs."""

    def test_valid_inputs_pass(self, provider, props):
        """Test that complete inputs produce no failures."""
        result = provider.check({}, props)

        assert result.failures == []
        assert result.inputs == props

    def test_empty_roles_fail(self, provider, props):
        """Test that a user without roles is rejected."""
        props["roles"] = []

        result = provider.check({}, props)

        assert [failure.property for failure in result.failures] == ["roles"]

    def test_blank_and_missing_fields_fail(self, provider, props):
        """Test that every invalid field is reported."""
        props["first_name"] = "  "
        props["email"] = "not-an-email"
        del props["password"]

        result = provider.check({}, props)

        assert {failure.property for failure in result.failures} == {
            "first_name",
            "email",
            "password",
        }

    def test_unknown_inputs_are_not_validated(self, provider, props):
        """Test that preview-time unknowns are let through."""
        props["roles"] = rpc.UNKNOWN

        result = provider.check({}, props)

        assert result.failures == []

    def test_check_never_calls_airflow(self, provider, props, directory):
        """Test that validation is local."""
        provider.check({}, props)

        assert directory.calls == []
        assert directory.list_calls == []


class TestLifecycle:
    """Tests for create, read, update and delete."""

    def test_create_uses_email_as_id(self, provider, props):
        """Test that the resource id is the e-mail."""
        result = provider.create(props)

        assert result.id == "a@x.com"
        assert result.outs["username"] == "a@x.com"
        assert result.outs["roles"] == ["Admin"]
        assert result.outs["active"] is True
        assert result.outs["password"] == "p"
        assert "id" not in result.outs

    def test_create_failure_propagates(self, provider, props, directory):
        """Test that create errors reach Pulumi."""
        directory.add("z@x.com", username="a@x.com")

        with pytest.raises(CreateError):
            provider.create(props)

    def test_read_echoes_stored_password(self, provider, props):
        """Test that read keeps the password from state."""
        created = provider.create(props)

        result = provider.read(created.id, {**created.outs, "password": "stored"})

        assert result.id == "a@x.com"
        assert result.outs["password"] == "stored"

    def test_read_of_deleted_user_returns_empty_id(self, provider, props, directory):
        """Test that a vanished user is reported as gone."""
        created = provider.create(props)
        directory.users.clear()

        result = provider.read(created.id, created.outs)

        assert result.id == ""
        assert result.outs == {}

    def test_import_reads_by_email(self, provider, directory):
        """Test that an import with only the id populates everything."""
        directory.add("a@x.com", username="accounts.google.com:123", roles=("Op",))

        result = provider.read("a@x.com", {"__provider": "serialized-provider"})

        assert result.id == "a@x.com"
        assert result.outs["username"] == "accounts.google.com:123"
        assert result.outs["roles"] == ["Op"]
        assert result.outs["password"] is None

    def test_update_patches_in_place(self, provider, props, directory):
        """Test that update addresses the username from the new inputs."""
        created = provider.create(props)
        new_props = {**props, "last_name": "Y", "roles": ["Admin", "Op"]}

        result = provider.update(created.id, created.outs, new_props)

        assert result.outs["last_name"] == "Y"
        assert result.outs["roles"] == ["Admin", "Op"]
        assert directory.calls[-1][0] == "patch_user"
        assert directory.calls[-1][1][0] == "a@x.com"

    def test_delete_uses_username(self, provider, directory):
        """Test that delete addresses the username stored in state."""
        directory.add("a@x.com", username="accounts.google.com:123")

        provider.delete("a@x.com", {"username": "accounts.google.com:123"})

        assert directory.users == {}

    def test_delete_of_missing_user_succeeds(self, provider):
        """Test that deleting an absent user is not an error."""
        provider.delete("a@x.com", {"username": "a@x.com"})


class TestDiff:
    """Tests for change detection."""

    def test_no_changes(self, provider, props):
        """Test that identical inputs need nothing."""
        result = provider.diff("a@x.com", props, dict(props))

        assert result.changes is False
        assert result.replaces == []

    def test_role_order_is_ignored(self, provider, props):
        """Test that reordered roles are not a change."""
        old = {**props, "roles": ["Admin", "Op"]}
        new = {**props, "roles": ["Op", "Admin", "Op"]}

        assert provider.diff("a@x.com", old, new).changes is False

    @pytest.mark.parametrize("field", ["first_name", "last_name", "password"])
    def test_in_place_fields(self, provider, props, field):
        """Test that names and password update without replacement."""
        result = provider.diff("a@x.com", props, {**props, field: "changed"})

        assert result.changes is True
        assert result.replaces == []

    @pytest.mark.parametrize(
        "field,value", [("email", "b@x.com"), ("username", "bee")]
    )
    def test_identity_fields_replace(self, provider, props, field, value):
        """Test that e-mail and username changes force replacement."""
        result = provider.diff("a@x.com", props, {**props, field: value})

        assert result.changes is True
        assert result.replaces == [field]
        assert result.delete_before_replace is True


class TestSharedReconciler:
    """Tests for the process-wide reconciler."""

    def test_set_and_get(self, shared_reconciler):
        """Test that the installed reconciler is the one handed out."""
        assert get_reconciler() is shared_reconciler

    def test_reset_builds_from_settings(self):
        """Test that a reset reconciler is rebuilt once and then reused."""
        set_reconciler(None)

        first = get_reconciler()

        assert get_reconciler() is first
        assert first.cache.page_limit == 100
