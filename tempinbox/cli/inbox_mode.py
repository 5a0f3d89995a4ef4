"""Inbox mode: fetch one mailbox once and print its messages."""

import asyncio
from pathlib import Path

import typer

from tempinbox.errors import InboxError
from tempinbox.gateway import Message
from tempinbox.session import login

from .shared import close_gateway, console, get_gateway, logger, print_messages


def inbox(
    address: str = typer.Argument(..., help="Mailbox address (local@domain)"),
    read: bool = typer.Option(False, "--read", "-r", help="Also fetch message bodies"),
    mock: Path | None = typer.Option(None, "--mock", help="Use the in-memory gateway seeded from this JSON file (e.g. data/mailboxes.example.json)"),
) -> None:
    """Fetch ADDRESS once and print its messages."""
    log = logger.bind(command="inbox", address=address)
    log.info("inbox.start")

    async def _run() -> list[Message]:
        gateway = get_gateway(mock)
        try:
            session = await login(gateway, address)
            messages = await session.fetch()
            if read:
                for m in messages:
                    await session.read(m.local_id)
            return messages
        finally:
            await close_gateway(gateway)

    try:
        messages = asyncio.run(_run())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except InboxError as e:
        console.print(f"[red]{e}[/red]")
        log.warning("inbox.failed", error=str(e))
        raise typer.Exit(1)
    print_messages(messages, title=address)
    log.info("inbox.complete", count=len(messages))
