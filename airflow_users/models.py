"""
Pydantic models for Airflow users.

Wire models mirror the JSON shapes of Airflow's stable REST API
(``/api/v1/users``). ``DeclaredUser`` is the validated desired state handed
to the reconciler and ``UserState`` is what the reconciler hands back.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Fields the API computes itself; they are never sent on create or patch.
READ_ONLY_FIELDS = frozenset(
    {
        "active",
        "failed_login_count",
        "login_count",
        "last_login",
        "created_on",
        "changed_on",
    }
)


class RoleRef(BaseModel):
    """A role assignment as the API represents it."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None


class UserRecord(BaseModel):
    """A user as stored in the remote directory.

    ``password`` is write-only: the API never returns it, so it is only set
    on records built for create and patch requests.
    """

    model_config = ConfigDict(extra="ignore")

    email: str
    username: str
    first_name: str | None = None
    last_name: str | None = None
    active: bool | None = None
    failed_login_count: int | None = None
    login_count: int | None = None
    last_login: str | None = None
    created_on: str | None = None
    changed_on: str | None = None
    roles: list[RoleRef] = Field(default_factory=list)
    password: str | None = Field(default=None, repr=False)

    def to_payload(self) -> dict[str, Any]:
        """Serialize the writable fields for a create or patch request."""
        return self.model_dump(
            mode="json", exclude_none=True, exclude=set(READ_ONLY_FIELDS)
        )


class UserCollection(BaseModel):
    """One page of ``GET /users``."""

    model_config = ConfigDict(extra="ignore")

    users: list[UserRecord] = Field(default_factory=list)
    total_entries: int = 0


class DeclaredUser(BaseModel):
    """Desired state of one Airflow user.

    Validated before any remote call is made: every string field is
    required and non-blank, and ``roles`` holds at least one distinct name.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    email: str = Field(min_length=1)
    username: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    roles: frozenset[str] = Field(min_length=1)

    @field_validator("email", "username", "first_name", "last_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("must be an e-mail address")
        return value

    @field_validator("roles", mode="before")
    @classmethod
    def _clean_roles(cls, value: Any) -> Any:
        if isinstance(value, str):
            raise ValueError("must be a collection of role names")
        if isinstance(value, (list, tuple, set, frozenset)):
            names = set()
            for name in value:
                if not isinstance(name, str) or not name.strip():
                    raise ValueError("role names must be non-blank strings")
                names.add(name)
            return frozenset(names)
        return value


class UserState(BaseModel):
    """Reconciled state of one user, keyed by e-mail.

    After an import only ``id`` is known; the next read fills the rest.
    """

    id: str
    email: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    password: str | None = Field(default=None, repr=False)
    roles: list[str] = Field(default_factory=list)
    active: bool | None = None
    failed_login_count: int | None = None
    login_count: int | None = None
    last_login: str | None = None

    def to_outputs(self) -> dict[str, Any]:
        """Provider outputs: every field except the id."""
        return self.model_dump(mode="json", exclude={"id"})
