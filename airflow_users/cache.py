"""Full-collection cache of directory users, keyed by e-mail."""

import logging
import threading
from typing import Protocol

from .errors import PaginationError
from .models import UserCollection, UserRecord

logger = logging.getLogger(__name__)

# Largest page the Airflow users API serves.
DEFAULT_PAGE_LIMIT = 100
DEFAULT_MAX_PAGES = 1000


class UserLister(Protocol):
    def list_users(self, limit: int, offset: int) -> UserCollection: ...


class UserCache:
    """Complete view of the remote directory, keyed by e-mail.

    Every refresh rebuilds the map by walking all pages while holding one
    lock, so concurrent callers are serialized: a caller arriving during a
    refresh waits for it and then runs its own. Pages merged before a failing
    page are kept, so after an error the cache may be partial.

    Args:
        client: Anything with ``list_users(limit, offset)``
        page_limit: Users requested per page
        max_pages: Pages walked before giving up on a refresh
    """

    def __init__(
        self,
        client: UserLister,
        page_limit: int = DEFAULT_PAGE_LIMIT,
        max_pages: int = DEFAULT_MAX_PAGES,
    ):
        self._client = client
        self.page_limit = page_limit
        self.max_pages = max_pages
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def refresh(self) -> None:
        """Rebuild the cache from the remote directory."""
        with self._lock:
            self._refresh_locked()

    def lookup(self, email: str) -> UserRecord | None:
        """Return the cached user for ``email``, if any."""
        with self._lock:
            return self._users.get(email)

    def find(self, email: str) -> UserRecord | None:
        """Refresh, then look up ``email``, inside one critical section."""
        with self._lock:
            self._refresh_locked()
            return self._users.get(email)

    def users(self) -> list[UserRecord]:
        """Snapshot of every cached user."""
        with self._lock:
            return list(self._users.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def _refresh_locked(self) -> None:
        self._users.clear()
        offset = 0

        for page_number in range(1, self.max_pages + 1):
            page = self._client.list_users(limit=self.page_limit, offset=offset)
            for user in page.users:
                self._users[user.email] = user

            logger.debug(
                f"Fetched users page {page_number} (offset {offset}): "
                f"{len(page.users)} users, {len(self._users)}/{page.total_entries} cached"
            )

            if len(self._users) >= page.total_entries:
                return

            if not page.users:
                raise PaginationError(
                    f"empty page at offset {offset} with only "
                    f"{len(self._users)} of {page.total_entries} users fetched"
                )

            offset += self.page_limit

        raise PaginationError(
            f"user listing did not converge after {self.max_pages} pages "
            f"({len(self._users)} users cached)"
        )
