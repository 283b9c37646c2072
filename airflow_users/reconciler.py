"""
User reconciler - turns declared Airflow users into API calls.

The e-mail address is the local identity of a user: some identity-provider
front-ends (Cloud Composer, for one) rewrite the username after the account
is created, so keying on it would make every rewrite look like a new user.
The API itself is keyed by username, so update and delete still address the
remote record by its current username.
"""

import logging
from typing import Protocol

from .cache import UserCache
from .client import AirflowDirectoryClient
from .errors import (
    CreateError,
    DeleteError,
    DirectoryError,
    DirectoryRequestError,
    PaginationError,
    ReadError,
    UpdateError,
)
from .models import DeclaredUser, UserCollection, UserRecord, UserState
from .roles import decode_roles, encode_roles
from .settings import AirflowUsersSettings

logger = logging.getLogger(__name__)


class DirectoryClient(Protocol):
    """The slice of the Airflow users API the reconciler relies on."""

    def list_users(self, limit: int, offset: int) -> UserCollection: ...

    def create_user(self, user: UserRecord) -> int: ...

    def patch_user(self, username: str, user: UserRecord) -> int: ...

    def delete_user(self, username: str) -> int: ...


class UserReconciler:
    """Create/read/update/delete state machine for one kind of resource: a user.

    Only reads go through the shared cache and its lock; writes are sent
    straight to the API. Nothing is retried here.

    Args:
        client: Directory client used for every remote call
        cache: Shared user cache (built over ``client`` when omitted)
    """

    def __init__(self, client: DirectoryClient, cache: UserCache | None = None):
        self.client = client
        self.cache = cache if cache is not None else UserCache(client)

    @classmethod
    def from_settings(cls, settings: AirflowUsersSettings) -> "UserReconciler":
        """Build a reconciler with its own HTTP client and cache."""
        client = AirflowDirectoryClient.from_settings(settings)
        cache = UserCache(
            client, page_limit=settings.page_limit, max_pages=settings.max_pages
        )
        return cls(client, cache)

    def create(self, declared: DeclaredUser) -> UserState:
        """Create the user, then read it back.

        Raises:
            CreateError: If the API rejects the user or it cannot be read back
        """
        logger.info(f"Creating Airflow user {declared.email}")
        try:
            self.client.create_user(_to_record(declared.email, declared))
        except DirectoryError as e:
            raise CreateError(declared.email, e) from e

        state = self.read(declared.email, declared.password)
        if state is None:
            raise CreateError(declared.email, "user not found after creation")
        return state

    def read(self, identity: str, password: str | None = None) -> UserState | None:
        """Read the user whose e-mail is ``identity``.

        The API never returns passwords, so ``password`` is echoed back as
        given by the caller.

        Returns:
            The current state, or None when the user no longer exists
        """
        try:
            user = self.cache.find(identity)
        except (DirectoryError, PaginationError) as e:
            raise ReadError(identity, e) from e

        if user is None:
            logger.info(f"Airflow user {identity} not found in directory")
            return None

        return UserState(
            id=identity,
            email=user.email,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            password=password,
            roles=sorted(decode_roles(user.roles)),
            active=user.active,
            failed_login_count=user.failed_login_count,
            login_count=user.login_count,
            last_login=user.last_login,
        )

    def update(self, identity: str, declared: DeclaredUser) -> UserState:
        """Patch the user addressed by the declared username, then read it back.

        Raises:
            UpdateError: If the patch fails or the user cannot be read back
        """
        logger.info(
            f"Updating Airflow user {identity} (username {declared.username})"
        )
        try:
            self.client.patch_user(
                declared.username, _to_record(identity, declared)
            )
        except DirectoryError as e:
            raise UpdateError(identity, e) from e

        state = self.read(identity, declared.password)
        if state is None:
            raise UpdateError(identity, "user not found after update")
        return state

    def delete(self, identity: str, username: str) -> None:
        """Delete the user addressed by ``username``; already gone is fine.

        Raises:
            DeleteError: On any failure other than a 404
        """
        logger.info(f"Deleting Airflow user {identity} (username {username})")
        try:
            self.client.delete_user(username)
        except DirectoryRequestError as e:
            if e.status_code == 404:
                logger.info(f"Airflow user {identity} was already deleted")
                return
            raise DeleteError(identity, e) from e
        except DirectoryError as e:
            raise DeleteError(identity, e) from e

    def import_user(self, key: str) -> UserState:
        """Seed state from an import key (the e-mail); read fills the rest."""
        return UserState(id=key)


def _to_record(email: str, declared: DeclaredUser) -> UserRecord:
    return UserRecord(
        email=email,
        username=declared.username,
        first_name=declared.first_name,
        last_name=declared.last_name,
        password=declared.password,
        roles=encode_roles(declared.roles),
    )
