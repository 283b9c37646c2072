"""HTTP client for the Airflow users API.

Wraps the four user endpoints of Airflow's stable REST API that the
reconciler needs. Non-2xx answers surface as ``DirectoryRequestError`` so
callers can inspect the status code; transport failures and unparseable
listing payloads surface as ``DirectoryError``. Writes report only their
status code.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .errors import ConfigurationError, DirectoryError, DirectoryRequestError
from .models import UserCollection, UserRecord
from .settings import AirflowUsersSettings

logger = logging.getLogger(__name__)


class AirflowDirectoryClient:
    """Synchronous client for ``/users`` on the Airflow REST API.

    Args:
        base_url: API root, e.g. "https://airflow.example.com/api/v1"
        auth: httpx auth (basic auth or a bearer header flow), optional
        headers: Extra headers sent on every request
        timeout: Request timeout in seconds
        verify: Verify TLS certificates
        transport: Custom httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        auth: httpx.Auth | tuple[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        if not base_url:
            raise ConfigurationError("Airflow API base URL is not configured")

        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            headers={"Accept": "application/json", **(headers or {})},
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls, settings: AirflowUsersSettings
    ) -> "AirflowDirectoryClient":
        """Build a client from settings, picking bearer or basic auth."""
        headers = {}
        auth = None
        if settings.access_token:
            headers["Authorization"] = f"Bearer {settings.access_token}"
        elif settings.username and settings.password:
            auth = (settings.username, settings.password)

        return cls(
            settings.base_url,
            auth=auth,
            headers=headers,
            timeout=settings.request_timeout,
            verify=settings.verify_tls,
        )

    def list_users(self, limit: int, offset: int) -> UserCollection:
        """Fetch one page of users."""
        response = self._request(
            "list_users",
            "GET",
            "/users",
            params={"limit": limit, "offset": offset},
        )
        return self._parse(response, UserCollection, "list_users")

    def create_user(self, user: UserRecord) -> int:
        """Create a user.

        The echoed body is not parsed; callers re-read the directory.

        Returns:
            The HTTP status code of the successful response
        """
        response = self._request(
            "create_user", "POST", "/users", json=user.to_payload()
        )
        return response.status_code

    def patch_user(self, username: str, user: UserRecord) -> int:
        """Patch the user currently addressed by ``username``.

        Returns:
            The HTTP status code of the successful response
        """
        response = self._request(
            "patch_user",
            "PATCH",
            f"/users/{quote(username, safe='')}",
            json=user.to_payload(),
        )
        return response.status_code

    def delete_user(self, username: str) -> int:
        """Delete the user addressed by ``username``.

        Returns:
            The HTTP status code of the successful response
        """
        response = self._request(
            "delete_user", "DELETE", f"/users/{quote(username, safe='')}"
        )
        return response.status_code

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "AirflowDirectoryClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self, operation: str, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        logger.debug(f"{operation}: {method} {path}")
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise DirectoryError(f"{operation} transport failure: {e}") from e

        if not response.is_success:
            raise DirectoryRequestError(
                operation, response.status_code, _error_detail(response)
            )
        return response

    def _parse(self, response: httpx.Response, model, operation: str):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise DirectoryError(
                f"{operation} returned an invalid payload: {e}"
            ) from e


def _error_detail(response: httpx.Response) -> str:
    """Short description of an error response, taken from its body."""
    try:
        payload = response.json()
    except ValueError:
        text = response.text
        return text[:200] if text else "empty response body"

    # Airflow answers errors with an RFC 7807 problem document
    if isinstance(payload, dict):
        detail = payload.get("detail") or payload.get("title")
        if detail:
            return str(detail)[:200]
    return str(payload)[:200]
