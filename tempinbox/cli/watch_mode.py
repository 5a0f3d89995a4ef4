"""Watch mode: poll a mailbox and print each batch of new messages until Ctrl+C."""

import asyncio
from pathlib import Path

import typer

from tempinbox.config import POLL_INTERVAL_MS
from tempinbox.errors import InboxError
from tempinbox.gateway import Message
from tempinbox.session import create, login
from tempinbox.utils.logger import bind_context, clear_context

from .shared import close_gateway, console, get_gateway, logger, print_messages


def watch(
    address: str | None = typer.Option(None, "--address", "-a", help="Existing address; omit for a new random one"),
    interval: int = typer.Option(POLL_INTERVAL_MS, "--interval", "-i", help="Milliseconds between polls"),
    read: bool = typer.Option(False, "--read", "-r", help="Fetch bodies of new messages"),
    mock: Path | None = typer.Option(None, "--mock", help="Use the in-memory gateway seeded from this JSON file (e.g. data/mailboxes.example.json)"),
) -> None:
    """Poll a mailbox and print new messages as they arrive."""
    log = logger.bind(command="watch")
    log.info("watch.start", address=address, interval_ms=interval)

    async def _run() -> None:
        gateway = get_gateway(mock)
        try:
            session = await (login(gateway, address) if address else create(gateway))
            bind_context(address=session.address)
            session.on("ready", lambda addr: console.print(f"[green]Watching {addr}[/green] [dim](Ctrl+C to stop)[/dim]"))

            async def on_batch(batch: list[Message]) -> None:
                if read:
                    for m in batch:
                        try:
                            await session.read(m.local_id)
                        except InboxError as e:
                            console.print(f"[yellow]Could not read {m.local_id}: {e}[/yellow]")
                print_messages(batch, title=f"{len(batch)} new")

            def on_error(error: Exception) -> None:
                console.print(f"[yellow]Poll failed, retrying: {error}[/yellow]")

            session.start_listener(interval, on_batch, on_error=on_error)
            try:
                await asyncio.Event().wait()
            finally:
                session.stop_listener()
        finally:
            await close_gateway(gateway)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        log.info("watch.stopped")
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        log.warning("watch.invalid_address", address=address, error=str(e))
        raise typer.Exit(1)
    except InboxError as e:
        console.print(f"[red]{e}[/red]")
        log.warning("watch.failed", error=str(e))
        raise typer.Exit(1)
    finally:
        clear_context()
