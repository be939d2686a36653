"""Token Factory CLI — the command-line entry point for the registry."""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from tokenfactory import __version__
from tokenfactory.config import ENV_PRINCIPAL
from tokenfactory.errors import TokenFactoryError

console = Console()

caller_option = click.option(
    "--as",
    "caller",
    required=True,
    envvar=ENV_PRINCIPAL,
    help="Principal making the call (or $TOKENFACTORY_PRINCIPAL)",
)


def _service(ctx: click.Context):
    from tokenfactory.registry.service import build_service

    try:
        return build_service(ctx.obj["settings"])
    except TokenFactoryError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)


def _report(ctx: click.Context, result, success: str) -> None:
    if result.is_ok:
        console.print(f"  [green]v[/] {success} {result}")
        return
    console.print(f"  [red]x[/] {result.error.label} {result}")
    ctx.exit(result.code)


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", "-d", default=None, help="State directory (default: ~/.tokenfactory)")
@click.option("--config", "config_path", default=None, help="YAML config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, data_dir: str | None, config_path: str | None, verbose: bool):
    """Token Factory — an administrator-gated registry of token symbols.

    The owner recorded by 'init' grants and revokes administrators;
    administrators register symbols, each at most once.
    """
    from tokenfactory.config import load_settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(config_path, data_dir=data_dir)
    except TokenFactoryError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    if settings.backend != "file":
        # State must outlive the process.
        console.print(f"[red]The CLI only supports the file backend (configured: {settings.backend}).[/]")
        ctx.exit(1)
    ctx.obj = {"settings": settings}


# ── Setup ────────────────────────────────────────────────────────────


@main.command()
@caller_option
@click.pass_context
def init(ctx: click.Context, caller: str):
    """Initialize a state directory with CALLER as the permanent owner."""
    from tokenfactory.auth.models import Principal
    from tokenfactory.registry.service import initialize

    settings = ctx.obj["settings"]
    try:
        initialize(settings, Principal(caller))
    except TokenFactoryError as e:
        console.print(f"[red]{e}[/]")
        ctx.exit(1)
    console.print(f"\n[bold blue]Token Factory[/] — initialized {settings.data_dir}")
    console.print(f"  Owner: [cyan]{caller}[/]")


@main.command()
@click.pass_context
def owner(ctx: click.Context):
    """Print the registry owner."""
    console.print(str(_service(ctx).get_owner()))


# ── Administrators ───────────────────────────────────────────────────


@main.group()
def admin():
    """Manage administrator privileges."""


@admin.command(name="set")
@click.argument("target")
@click.option("--revoke", is_flag=True, help="Remove the privilege instead of granting it")
@caller_option
@click.pass_context
def set_admin(ctx: click.Context, target: str, revoke: bool, caller: str):
    """Grant (or with --revoke, remove) administrator privilege for TARGET."""
    from tokenfactory.auth.models import Principal

    result = _service(ctx).set_administrator(Principal(caller), Principal(target), not revoke)
    _report(ctx, result, f"{target} {'revoked' if revoke else 'granted'}")


@admin.command()
@click.argument("principal")
@click.pass_context
def check(ctx: click.Context, principal: str):
    """Print whether PRINCIPAL is an administrator."""
    from tokenfactory.auth.models import Principal

    console.print("true" if _service(ctx).is_admin(Principal(principal)) else "false")


@admin.command(name="list")
@click.pass_context
def list_admins(ctx: click.Context):
    """List current administrators."""
    admins = _service(ctx).administrators()
    if not admins:
        console.print("[yellow]No administrators.[/]")
        return
    for p in admins:
        console.print(f"  [cyan]{p}[/]")


# ── Tokens ───────────────────────────────────────────────────────────


@main.group()
def token():
    """Register and look up token symbols."""


@token.command()
@click.argument("symbol")
@click.argument("name")
@click.argument("max_supply", type=int)
@click.argument("decimals", type=click.IntRange(min=0))
@caller_option
@click.pass_context
def create(ctx: click.Context, symbol: str, name: str, max_supply: int, decimals: int, caller: str):
    """Register SYMBOL with NAME, MAX_SUPPLY and DECIMALS."""
    from tokenfactory.auth.models import Principal

    result = _service(ctx).create_token(Principal(caller), symbol, name, max_supply, decimals)
    _report(ctx, result, f"Registered {symbol}")


@token.command()
@click.argument("symbol")
@click.pass_context
def show(ctx: click.Context, symbol: str):
    """Show the record registered under SYMBOL."""
    record = _service(ctx).get_token_details(symbol)
    if record is None:
        console.print(f"[yellow]{symbol} is not registered.[/]")
        ctx.exit(1)
    console.print(f"  [cyan]{record.symbol}[/] {record.name}")
    console.print(f"    max supply: {record.max_supply}")
    console.print(f"    decimals:   {record.decimals}")


@token.command(name="list")
@click.pass_context
def list_tokens(ctx: click.Context):
    """List all registered tokens."""
    records = _service(ctx).list_tokens()
    if not records:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Registry ({len(records)} tokens)")
    table.add_column("Symbol", style="cyan")
    table.add_column("Name")
    table.add_column("Max supply", justify="right")
    table.add_column("Decimals", justify="right")
    for r in records:
        table.add_row(r.symbol, r.name, str(r.max_supply), str(r.decimals))
    console.print(table)


# ── Audit ────────────────────────────────────────────────────────────


@main.command()
@click.option("--symbol", "-s", default=None, help="Only events for this symbol")
@click.option("--actor", "-a", default=None, help="Only events by this principal")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.pass_context
def events(ctx: click.Context, symbol: str | None, actor: str | None, fmt: str):
    """Export the token-created audit trail."""
    output = _service(ctx).events.export_events(fmt, actor=actor, symbol=symbol)
    # Plain stdout keeps the export pipeable.
    sys.stdout.write(output + "\n")


if __name__ == "__main__":
    main()
