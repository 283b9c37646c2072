"""
airflow-users - Declarative management of Airflow user accounts.

Declare Airflow users as Pulumi resources and let the provider reconcile them
against Airflow's REST API. Users are tracked by e-mail, so identity
providers that rewrite usernames after login do not cause spurious
replacements.
"""

from .reconciler import UserReconciler
from .settings import AirflowUsersSettings, get_settings, reload_settings

__version__ = "0.1.0"
__all__ = [
    "AirflowUsersSettings",
    "UserReconciler",
    "get_settings",
    "reload_settings",
]
