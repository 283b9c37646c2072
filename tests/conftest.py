"""
Pytest configuration and fixtures for airflow-users tests.
"""

import pytest

from airflow_users.errors import DirectoryError, DirectoryRequestError
from airflow_users.models import DeclaredUser, RoleRef, UserCollection, UserRecord
from airflow_users.reconciler import UserReconciler


class FakeDirectory:
    """In-memory stand-in for the Airflow users API, keyed by username.

    Behaves like the real API where the reconciler cares: listing pages in
    insertion order, rejecting duplicate usernames, 404 on unknown usernames
    and never returning passwords.
    """

    base_url = "http://airflow.test/api/v1"

    def __init__(self):
        self.users: dict[str, UserRecord] = {}
        self.list_calls: list[tuple[int, int]] = []
        self.calls: list[tuple[str, object]] = []
        self.failures: dict[str, Exception] = {}
        self.closed = False

    def add(self, email, username=None, roles=("Viewer",), **fields) -> UserRecord:
        record = UserRecord(
            email=email,
            username=username or email,
            first_name=fields.pop("first_name", "First"),
            last_name=fields.pop("last_name", "Last"),
            active=fields.pop("active", True),
            failed_login_count=fields.pop("failed_login_count", 0),
            login_count=fields.pop("login_count", 0),
            roles=[RoleRef(name=role) for role in roles],
            **fields,
        )
        self.users[record.username] = record
        return record

    def rename(self, old_username: str, new_username: str) -> None:
        """Rewrite a username out-of-band, as an SSO front-end would."""
        record = self.users.pop(old_username)
        self.users[new_username] = record.model_copy(update={"username": new_username})

    def list_users(self, limit: int, offset: int) -> UserCollection:
        self.list_calls.append((limit, offset))
        self._maybe_fail("list_users")
        records = list(self.users.values())
        return UserCollection(
            users=records[offset : offset + limit], total_entries=len(records)
        )

    def create_user(self, user: UserRecord) -> int:
        self.calls.append(("create_user", user))
        self._maybe_fail("create_user")
        if user.username in self.users:
            raise DirectoryRequestError("create_user", 409, "Username already exists")
        stored = user.model_copy(
            update={
                "password": None,
                "active": True,
                "login_count": 0,
                "failed_login_count": 0,
            }
        )
        self.users[stored.username] = stored
        return 201

    def patch_user(self, username: str, user: UserRecord) -> int:
        self.calls.append(("patch_user", (username, user)))
        self._maybe_fail("patch_user")
        if username not in self.users:
            raise DirectoryRequestError("patch_user", 404, "User not found")
        current = self.users.pop(username)
        stored = current.model_copy(
            update={
                "email": user.email,
                "username": user.username,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "roles": user.roles,
            }
        )
        self.users[stored.username] = stored
        return 200

    def delete_user(self, username: str) -> int:
        self.calls.append(("delete_user", username))
        self._maybe_fail("delete_user")
        if username not in self.users:
            raise DirectoryRequestError("delete_user", 404, "User not found")
        del self.users[username]
        return 204

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeDirectory":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _maybe_fail(self, operation: str) -> None:
        error = self.failures.get(operation)
        if error is not None:
            raise error


@pytest.fixture
def directory():
    """Provide an empty in-memory Airflow directory."""
    return FakeDirectory()


@pytest.fixture
def reconciler(directory):
    """Provide a reconciler wired to the in-memory directory."""
    return UserReconciler(directory)


@pytest.fixture
def declared():
    """Provide the declared user used across scenarios."""
    return DeclaredUser(
        email="a@x.com",
        username="a@x.com",
        first_name="A",
        last_name="X",
        password="p",
        roles={"Admin"},
    )


@pytest.fixture
def transport_error():
    """Provide a transport failure as the HTTP client reports it."""
    return DirectoryError("list_users transport failure: connection refused")
