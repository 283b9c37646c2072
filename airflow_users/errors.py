"""
airflow-users errors.
"""


class AirflowUsersError(Exception):
    """Base exception for all airflow-users errors."""
    pass


class ConfigurationError(AirflowUsersError):
    """Errors in configuration."""
    pass


class DirectoryError(AirflowUsersError):
    """Transport failure or unusable payload from the Airflow users API."""
    pass


class DirectoryRequestError(DirectoryError):
    """The Airflow users API answered with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, detail: str):
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        super().__init__(
            f"{operation} failed with status {status_code}: {detail}"
        )


class PaginationError(AirflowUsersError):
    """Walking the user pages did not converge on the reported total."""
    pass


class RoleReferenceError(AirflowUsersError):
    """A role reference came back from the API without a name.

    The API always names its role references, so this is a broken contract
    rather than a user error. It is never caught by the reconciler.
    """
    pass


class ReconcileError(AirflowUsersError):
    """A reconciliation step failed for one user."""

    operation = "reconcile"

    def __init__(self, email: str, cause: object):
        self.email = email
        self.cause = cause
        super().__init__(
            f"failed to {self.operation} user `{email}` in Airflow: {cause}"
        )


class CreateError(ReconcileError):
    operation = "create"


class ReadError(ReconcileError):
    operation = "read"


class UpdateError(ReconcileError):
    operation = "update"


class DeleteError(ReconcileError):
    operation = "delete"
