"""
airflow-users Test Suite

Unit tests for the directory client, user cache, role codec, reconciler,
Pulumi provider and CLI.
"""
