import typer
from typing import Optional
from rich.console import Console
from rich.table import Table

from ..config import get_log_file, get_log_level
from ..domain.errors import CflipError
from ..logging_setup import setup_logging
from ..platform import platform_label
from ..services.accounts import AccountService

app = typer.Typer(help="Manage and switch between multiple Claude Code accounts.")
console = Console()


def get_account_service() -> AccountService:
    """get account service instance."""
    return AccountService.create()


def _fail(e: Exception) -> None:
    console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(1)


def _format_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "never"


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l",
        help="Logging level (debug, info, warning, error). Env: CFLIP_LOG_LEVEL",
    ),
):
    """configure logging before any command runs."""
    setup_logging(log_level or get_log_level(), get_log_file())


@app.command("add")
def add_account(
    alias: str = typer.Option("", "--alias", "-n", help="Custom name for the account"),
):
    """add the account Claude Code is logged in with to managed profiles."""
    try:
        profile = get_account_service().add_current(alias)
    except CflipError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Account added: [cyan]{profile.display_name}[/cyan]")
    if profile.email != profile.display_name:
        console.print(f"  Email: {profile.email}")


@app.command("list")
def list_accounts(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show timestamps"),
):
    """list all managed accounts."""
    try:
        profiles = get_account_service().list_profiles()
    except CflipError as e:
        _fail(e)

    if not profiles:
        console.print("[yellow]No accounts found.[/yellow]")
        console.print("\nAdd the current one with: [cyan]cflip add[/cyan]")
        return

    table = Table(title=f"Accounts ({platform_label()})")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="white")
    if verbose:
        table.add_column("Created", style="dim")
        table.add_column("Last active", style="dim")
    table.add_column("Status", style="green")

    for number, profile in enumerate(profiles, start=1):
        status = "active" if profile.is_active else ""
        if profile.token_expired:
            status = (status + " [yellow]token expired[/yellow]").strip()
        row = [str(number), profile.display_name, profile.email]
        if verbose:
            row += [_format_time(profile.created_at), _format_time(profile.last_active_at)]
        row.append(status)
        table.add_row(*row)

    console.print(table)


@app.command("switch")
def switch_account(
    target: str = typer.Argument("", help="Account number, name or email (default: next)"),
    force: bool = typer.Option(False, "--force", help="Skip the Claude Code running check"),
    confirm: bool = typer.Option(False, "--confirm", "-c", help="Ask before switching"),
):
    """switch to an account, or to the next one in sequence."""
    if confirm and not force:
        if not typer.confirm("Are you sure you want to switch accounts?"):
            console.print("[yellow]Switch cancelled[/yellow]")
            return

    try:
        profile = get_account_service().switch(target, force=force)
    except CflipError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Switched to [cyan]{profile.display_name}[/cyan]")
    console.print("[dim]Restart Claude Code to use the new account.[/dim]")


@app.command("remove")
def remove_account(
    target: str = typer.Argument(..., help="Account number, name or email"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """remove an account from management (Claude Code itself is untouched)."""
    if not yes and not typer.confirm(f"Remove account '{target}'?"):
        console.print("[yellow]Removal cancelled[/yellow]")
        return

    try:
        profile = get_account_service().remove(target)
    except CflipError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Account removed: {profile.display_name}")


@app.command("rename")
def rename_account(
    target: str = typer.Argument(..., help="Account number, name or email"),
    alias: str = typer.Argument(..., help="New alias"),
):
    """change an account's alias."""
    try:
        profile = get_account_service().rename(target, alias)
    except CflipError as e:
        _fail(e)

    console.print(f"[green]✓[/green] {profile.email} is now [cyan]{profile.display_name}[/cyan]")


@app.command("current")
def current_account():
    """show the active account."""
    try:
        profile = get_account_service().current()
    except CflipError as e:
        _fail(e)

    console.print(f"\n[bold]Active account:[/bold] [cyan]{profile.display_name}[/cyan]")
    console.print(f"  Email:        {profile.email}")
    if profile.account_uuid:
        console.print(f"  Account UUID: {profile.account_uuid}")
    console.print(f"  Last updated: {_format_time(profile.updated_at)}\n")


@app.command("validate")
def validate_accounts():
    """check every saved account has an identity and an access token."""
    try:
        service = get_account_service()
        errors = service.validate_all()
        expired = service.expired_profiles()
    except CflipError as e:
        _fail(e)

    for name, error in errors.items():
        console.print(f"[red]✗[/red] {name}: {error}")
    for profile in expired:
        console.print(
            f"[yellow]![/yellow] {profile.display_name}: access token expired "
            "(Claude Code refreshes it on next start)"
        )

    if errors:
        raise typer.Exit(1)
    console.print("[green]✓[/green] All accounts are valid")


if __name__ == "__main__":
    app()
