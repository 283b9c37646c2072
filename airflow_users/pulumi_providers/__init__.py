"""Pulumi dynamic providers for airflow-users resources."""

from .user import (
    AirflowUser,
    AirflowUserProvider,
    get_reconciler,
    set_reconciler,
)

__all__ = [
    "AirflowUser",
    "AirflowUserProvider",
    "get_reconciler",
    "set_reconciler",
]
