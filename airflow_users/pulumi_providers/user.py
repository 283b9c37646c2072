"""Pulumi dynamic provider for Airflow users.

This module exposes the user reconciler to Pulumi. The provider object is
serialized into the stack state by Pulumi, so it holds no connection state
of its own: every call goes through a reconciler shared by the whole provider
process and built from settings (``AIRFLOW_USERS_*`` environment variables)
on first use.
"""

import logging
import threading
from typing import Any, Optional

import pulumi
from pulumi import Input, Output
from pulumi.dynamic import (
    CheckFailure,
    CheckResult,
    CreateResult,
    DiffResult,
    ReadResult,
    ResourceProvider,
    UpdateResult,
)
from pulumi.runtime import rpc
from pydantic import ValidationError

from airflow_users.models import DeclaredUser
from airflow_users.reconciler import UserReconciler
from airflow_users.settings import get_settings

logger = logging.getLogger(__name__)

DECLARED_FIELDS = ("email", "username", "first_name", "last_name", "password", "roles")

# A change to these forces delete-then-create.
REPLACE_FIELDS = ("email", "username")
UPDATE_FIELDS = ("first_name", "last_name", "password", "roles")

# Process-wide reconciler shared by every resource handled by this provider
_reconciler: UserReconciler | None = None
_reconciler_lock = threading.Lock()


def get_reconciler() -> UserReconciler:
    """Get the shared reconciler, building it from settings on first call."""
    global _reconciler
    with _reconciler_lock:
        if _reconciler is None:
            _reconciler = UserReconciler.from_settings(get_settings())
        return _reconciler


def set_reconciler(reconciler: UserReconciler | None) -> None:
    """Replace the shared reconciler (None resets it to the settings default)."""
    global _reconciler
    with _reconciler_lock:
        _reconciler = reconciler


def _declared(props: dict[str, Any]) -> DeclaredUser:
    return DeclaredUser.model_validate(
        {field: props.get(field) for field in DECLARED_FIELDS}
    )


class AirflowUserProvider(ResourceProvider):
    """Dynamic provider managing one Airflow user per resource.

    The resource id is the user's e-mail. Update and delete address the
    remote user by its username.
    """

    def check(self, _olds: dict[str, Any], news: dict[str, Any]) -> CheckResult:
        """
        Validate declared inputs before anything is sent to Airflow.

        Inputs that are still unknown (during preview) are not validated.
        """
        if any(news.get(field) == rpc.UNKNOWN for field in DECLARED_FIELDS):
            return CheckResult(inputs=news, failures=[])

        try:
            _declared(news)
        except ValidationError as e:
            failures = [
                CheckFailure(
                    property_=str(error["loc"][0]) if error["loc"] else "",
                    reason=error["msg"],
                )
                for error in e.errors()
            ]
            return CheckResult(inputs=news, failures=failures)

        return CheckResult(inputs=news, failures=[])

    def create(self, props: dict[str, Any]) -> CreateResult:
        """
        Create a user.

        Args:
            props: Resource properties

        Returns:
            CreateResult with the e-mail as ID and the read-back outputs
        """
        state = get_reconciler().create(_declared(props))
        return CreateResult(id_=state.id, outs=state.to_outputs())

    def read(self, id: str, props: dict[str, Any]) -> ReadResult:
        """
        Refresh a user from Airflow.

        An import calls this with nothing but the id; the id is taken as the
        e-mail. A user missing from Airflow yields an empty id, which tells
        Pulumi the resource is gone.
        """
        reconciler = get_reconciler()
        if "email" not in props:
            logger.info(f"Importing Airflow user {id}")
            props = reconciler.import_user(id).to_outputs()

        state = reconciler.read(id, props.get("password"))
        if state is None:
            return ReadResult(id_="", outs={})
        return ReadResult(id_=state.id, outs=state.to_outputs())

    def update(
        self, id: str, old_props: dict[str, Any], new_props: dict[str, Any]
    ) -> UpdateResult:
        """
        Update a user in place.

        Args:
            id: Resource ID (e-mail)
            old_props: Old resource properties
            new_props: New resource properties

        Returns:
            UpdateResult with outputs
        """
        state = get_reconciler().update(id, _declared(new_props))
        return UpdateResult(outs=state.to_outputs())

    def delete(self, id: str, props: dict[str, Any]) -> None:
        """
        Delete a user.

        Args:
            id: Resource ID (e-mail)
            props: Resource properties
        """
        get_reconciler().delete(id, props["username"])

    def diff(
        self, id: str, old_props: dict[str, Any], new_props: dict[str, Any]
    ) -> DiffResult:
        """
        Compare stored outputs with new inputs.

        Args:
            id: Resource ID (e-mail)
            old_props: Old resource properties
            new_props: New resource properties

        Returns:
            DiffResult indicating if changes are needed
        """
        replaces = [
            field
            for field in REPLACE_FIELDS
            if old_props.get(field) != new_props.get(field)
        ]

        changes = []
        for field in UPDATE_FIELDS:
            old_val = old_props.get(field)
            new_val = new_props.get(field)
            if field == "roles":
                # Role order carries no meaning
                old_val = set(old_val or [])
                new_val = set(new_val or [])
            if old_val != new_val:
                changes.append(field)

        return DiffResult(
            changes=len(changes) > 0 or len(replaces) > 0,
            replaces=replaces,
            stables=[],
            delete_before_replace=True,
        )


class AirflowUser(pulumi.dynamic.Resource):
    """
    A Pulumi dynamic resource for managing an Airflow user.

    Changing ``email`` or ``username`` replaces the user; the other inputs
    are updated in place. The password is stored as a Pulumi secret and is
    never read back from Airflow.

    Args:
        name: Resource name
        email: E-mail address, the identity of the user
        username: Airflow username
        first_name: First name
        last_name: Last name
        password: Password
        roles: Names of the Airflow roles granted to the user
        opts: Standard Pulumi resource options
    """

    email: Output[str]
    username: Output[str]
    first_name: Output[str]
    last_name: Output[str]
    password: Output[str]
    roles: Output[list[str]]
    active: Output[bool]
    failed_login_count: Output[int]
    login_count: Output[int]
    last_login: Output[str]

    def __init__(
        self,
        name: str,
        email: Input[str],
        username: Input[str],
        first_name: Input[str],
        last_name: Input[str],
        password: Input[str],
        roles: Input[list[str]],
        opts: Optional[pulumi.ResourceOptions] = None,
    ):
        opts = pulumi.ResourceOptions.merge(
            opts, pulumi.ResourceOptions(additional_secret_outputs=["password"])
        )

        super().__init__(
            AirflowUserProvider(),
            name,
            {
                "email": email,
                "username": username,
                "first_name": first_name,
                "last_name": last_name,
                "password": Output.secret(password),
                "roles": roles,
                # Computed on create
                "active": None,
                "failed_login_count": None,
                "login_count": None,
                "last_login": None,
            },
            opts,
        )
