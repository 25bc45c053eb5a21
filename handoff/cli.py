"""
handoff CLI

Usage:
    handoff token set TOKEN     # Store the registry token
    handoff token show          # Print the stored token (masked)
    handoff token clear         # Forget the stored token
    handoff send FILE           # Create a transfer, wait for the receiver, upload
"""

import asyncio
import signal
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from handoff.core.orchestrator import TransferFlow
from handoff.core.state_machine import TransferState
from handoff.observability import metrics
from handoff.registry.client import RegistryClient
from handoff.registry.schemas import TransferRequest
from handoff.settings import settings
from handoff.store.token_store import get_token_store, resolve_token
from handoff.ui.console import ConsolePresenter

console = Console()


def _mask(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return token[:2] + "*" * (len(token) - 4) + token[-2:]


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Emit structured event logs on stderr')
def cli(verbose):
    """Send one file to one receiver through the transfer registry."""
    settings.LOG_ENABLED = bool(verbose)


@cli.group()
def token():
    """Manage the registry token."""


@token.command('set')
@click.argument('value')
def token_set(value):
    """Store the registry token."""
    store = get_token_store()
    try:
        store.set_token(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='VALUE')
    console.print("[green]Token saved[/green]")


@token.command('show')
def token_show():
    """Print the stored token, masked."""
    current = resolve_token(get_token_store())
    if not current:
        console.print("[yellow]No token set[/yellow]")
        sys.exit(1)
    console.print(_mask(current))


@token.command('clear')
def token_clear():
    """Forget the stored token."""
    get_token_store().clear_token()
    console.print("[green]Token cleared[/green]")


def _print_stats():
    snap = metrics.get_snapshot()
    table = Table(title="Transfer stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for k, v in snap.items():
        table.add_row(k, str(v))
    console.print(table)


async def _run_flow(origin: str, token_value: str, request: TransferRequest, file_path: Path,
                    interactive: bool) -> TransferState:
    presenter = ConsolePresenter(console, interactive=interactive)
    async with RegistryClient(origin, token_value) as client:
        flow = TransferFlow(client, presenter)

        loop = asyncio.get_running_loop()
        handler_installed = False
        try:
            loop.add_signal_handler(signal.SIGINT, flow.cancel)
            handler_installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            pass

        try:
            with open(file_path, 'rb') as fh:
                state = await flow.run(request, fh)
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)

        if flow.error is not None and state is TransferState.FAILED and flow.cancel_token.cancelled:
            console.print("\n[yellow]Transfer abandoned[/yellow]")
        elif state is TransferState.SUCCEEDED:
            console.print(f"[green]Sent {request.filename}[/green]")
        return state


@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--origin', default=None, help='Registry origin (default: HANDOFF_ORIGIN)')
@click.option('--stats', is_flag=True, help='Print transfer counters afterwards')
def send(file_path, origin, stats):
    """Send FILE to whoever opens the receive link."""
    token_value = resolve_token(get_token_store())
    if not token_value:
        console.print("[red]No token set.[/red] Run [bold]handoff token set TOKEN[/bold] first.")
        sys.exit(1)

    request = TransferRequest.from_path(file_path)
    state = asyncio.run(_run_flow(
        origin or settings.HANDOFF_ORIGIN,
        token_value,
        request,
        file_path,
        interactive=sys.stdin.isatty(),
    ))

    if stats:
        _print_stats()
    sys.exit(0 if state is TransferState.SUCCEEDED else 1)


def main():
    cli()


if __name__ == "__main__":
    main()
