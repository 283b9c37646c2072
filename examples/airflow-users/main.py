"""
Airflow Users Example - Declare Airflow accounts as Pulumi resources.

Point the provider at your Airflow webserver before running Pulumi:

  export AIRFLOW_USERS_BASE_URL=https://airflow.example.com/api/v1
  export AIRFLOW_USERS_USERNAME=admin
  export AIRFLOW_USERS_PASSWORD=...
  pulumi up

Existing accounts can be adopted by e-mail with
``opts=pulumi.ResourceOptions(import_="analyst@example.com")``.
"""

import pulumi

from airflow_users.pulumi_providers import AirflowUser

config = pulumi.Config()

# Platform administrator
admin = AirflowUser(
    "platform-admin",
    email="platform@example.com",
    username="platform@example.com",
    first_name="Platform",
    last_name="Team",
    password=config.require_secret("adminPassword"),
    roles=["Admin"],
)

# Read-only analyst; the username may later be rewritten by SSO
analyst = AirflowUser(
    "analyst",
    email="analyst@example.com",
    username="analyst@example.com",
    first_name="Ana",
    last_name="Lyst",
    password=config.require_secret("analystPassword"),
    roles=["Viewer", "User"],
)

pulumi.export("admin_active", admin.active)
pulumi.export("analyst_username", analyst.username)
