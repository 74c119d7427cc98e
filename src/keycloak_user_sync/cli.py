"""CLI entry point for Keycloak User Sync."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .core.config import UserSyncConfig, describe_config, load_config
from .core.credentials import AuthError, TokenClient
from .listeners.router import UserSyncEventListener
from .webhooks.events import EventType, create_event


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console = Console()
        console.print(f"Keycloak User Sync v{__version__}")
        raise typer.Exit(0)


app = typer.Typer(
    name="keycloak-user-sync",
    help="""Operator tools for the Keycloak user sync event listener.

Checks the configuration the listener resolves, verifies the service
client can obtain a token, and sends test events to the webhook.

Quick start:
  keycloak-user-sync config
  keycloak-user-sync token
  keycloak-user-sync send USER_REGISTERED --user-id u1
""",
    add_completion=False,
)
console = Console()


def parse_pairs(pairs: list[str] | None, option: str) -> dict[str, str]:
    """Parse repeated key=value options into a dict."""
    result: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint=option)
        result[key] = value
    return result


@app.callback()
def main(
    ctx: typer.Context,
    properties: list[str] | None = typer.Option(
        None,
        "--property",
        "-D",
        help="Host property as key=value (e.g. keycloak.realm=myrealm). Repeatable.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show listener log output"),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Keycloak User Sync - webhook relay for user lifecycle events."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    ctx.obj = parse_pairs(properties, "--property")


def _load(ctx: typer.Context) -> UserSyncConfig:
    return load_config(ctx.obj or {})


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Display the resolved configuration (client secret masked)."""
    config = _load(ctx)

    table = Table(title="Resolved configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in describe_config(config).items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def token(ctx: typer.Context) -> None:
    """Request a service token with the client-credentials grant.

    Exits with status 1 if the identity server rejects the request.
    """
    config = _load(ctx)
    client = TokenClient(config)
    try:
        access_token = client.fetch_service_token()
    except AuthError as e:
        console.print(f"[red]Token request failed: {e}[/red]")
        raise typer.Exit(1) from None
    finally:
        client.close()

    masked = f"{access_token.access_token[:8]}..." if access_token.access_token else ""
    console.print(f"[green]✓ Obtained {access_token.token_type} token[/green] {masked}")
    if access_token.expires_in is not None:
        console.print(f"[cyan]Expires in:[/cyan] {access_token.expires_in}s")
    raise typer.Exit(0)


@app.command()
def send(
    ctx: typer.Context,
    event_type: EventType = typer.Argument(..., help="Event type to send"),
    user_id: str | None = typer.Option(None, "--user-id", "-u", help="User id for the event"),
    details: list[str] | None = typer.Option(
        None, "--detail", "-d", help="Event detail as key=value. Repeatable."
    ),
) -> None:
    """Send one event to the webhook, waiting for the result.

    Examples:
        keycloak-user-sync send USER_REGISTERED -u u1
        keycloak-user-sync send SOCIAL_LOGIN -u u1 -d identity_provider=google
    """
    config = _load(ctx)
    detail_map = parse_pairs(details, "--detail") or None
    event = create_event(event_type, user_id=user_id, details=detail_map)

    listener = UserSyncEventListener(config)
    try:
        ok = listener.forward(event, "admin" if event_type.value.endswith("_ADMIN") else "user")
    finally:
        listener.close()

    if ok:
        console.print(f"[green]✓ Delivered {event.event_type} to {config.webhook_url}[/green]")
        raise typer.Exit(0)
    console.print(f"[red]Delivery of {event.event_type} failed; run with --verbose[/red]")
    raise typer.Exit(1)


if __name__ == "__main__":
    app()
