"""
airflow-users CLI - Inspect the Airflow user directory.

Reconciliation itself is driven by Pulumi through the ``AirflowUser``
resource; these commands only read.
"""

import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .errors import AirflowUsersError
from .models import UserState
from .reconciler import UserReconciler
from .settings import get_settings

# Setup
app = typer.Typer(
    name="airflow-users",
    help="Declarative Airflow user management",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Configure logging on module import
configure_logging()


def _initialize_reconciler(base_url: str | None = None) -> UserReconciler:
    """Build a reconciler from settings, with an optional base URL override."""
    settings = get_settings()
    if base_url:
        settings = settings.model_copy(update={"base_url": base_url})
    return UserReconciler.from_settings(settings)


def _handle_command_error(e: Exception, command_type: str) -> None:
    """Print a command failure and exit.

    Raises:
        SystemExit: Always exits with code 1
    """
    console.print(
        f"\n[bold red]✗ {command_type.capitalize()} failed:[/bold red] {e}"
    )
    raise typer.Exit(code=1)


def _create_command_panel(title: str, color: str, base_url: str) -> Panel:
    return Panel.fit(
        f"[bold {color}]{title}[/bold {color}]\nAPI: {base_url}",
        border_style=color,
    )


@app.command(name="list")
def list_users(
    base_url: str = typer.Option(
        None, "--base-url", help="Airflow API base URL (overrides .env)"
    ),
):
    """List every user in the Airflow directory."""
    try:
        reconciler = _initialize_reconciler(base_url)
        with reconciler.client:
            console.print(
                _create_command_panel(
                    "Airflow Users", "blue", reconciler.client.base_url
                )
            )
            reconciler.cache.refresh()
            users = sorted(reconciler.cache.users(), key=lambda user: user.email)
    except AirflowUsersError as e:
        _handle_command_error(e, "list")

    table = Table(show_header=True, header_style="bold")
    table.add_column("E-mail")
    table.add_column("Username")
    table.add_column("Name")
    table.add_column("Roles")
    table.add_column("Active")
    table.add_column("Logins", justify="right")

    for user in users:
        roles = ", ".join(sorted(role.name or "?" for role in user.roles))
        table.add_row(
            user.email,
            user.username,
            f"{user.first_name or ''} {user.last_name or ''}".strip(),
            roles,
            "yes" if user.active else "no",
            str(user.login_count or 0),
        )

    console.print(table)
    console.print(f"\n[dim]{len(users)} users[/dim]")


@app.command()
def show(
    email: str = typer.Argument(..., help="E-mail address of the user"),
    base_url: str = typer.Option(
        None, "--base-url", help="Airflow API base URL (overrides .env)"
    ),
):
    """Show the reconciled state of one user."""
    try:
        reconciler = _initialize_reconciler(base_url)
        with reconciler.client:
            state = reconciler.read(email)
    except AirflowUsersError as e:
        _handle_command_error(e, "show")

    if state is None:
        console.print(f"[bold red]✗ No Airflow user with e-mail {email}[/bold red]")
        raise typer.Exit(code=1)

    _print_state(state)


def _print_state(state: UserState) -> None:
    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    for key, value in state.to_outputs().items():
        if key == "password":
            continue
        if isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@app.command()
def version():
    """Show airflow-users version."""
    from . import __version__

    console.print(f"airflow-users version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
