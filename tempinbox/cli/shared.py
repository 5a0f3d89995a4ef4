"""Shared CLI helpers: console, logger, gateway selection, message rendering."""

from pathlib import Path

from rich.console import Console
from rich.table import Table

from tempinbox.gateway import HttpMailGateway, MailGateway, Message, MockMailGateway
from tempinbox.utils.logger import get_logger

console = Console()
logger = get_logger("tempinbox.cli")


def get_gateway(mock: Path | None = None) -> MailGateway:
    """HTTP gateway, or the in-memory mock seeded from ``mock`` when given."""
    if mock is not None:
        logger.debug("cli.gateway.mock", fixture_path=str(mock))
        return MockMailGateway(fixture_path=mock)
    return HttpMailGateway()


async def close_gateway(gateway: MailGateway) -> None:
    aclose = getattr(gateway, "aclose", None)
    if aclose is not None:
        await aclose()


def print_messages(messages: list[Message], title: str | None = None) -> None:
    """Print messages as a table, then bodies for messages that were read."""
    if not messages:
        console.print("[dim]No messages.[/dim]")
        return
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Date", style="dim")
    for m in messages:
        table.add_row(m.local_id, m.from_, m.subject, m.date)
    console.print(table)
    for m in messages:
        if m.body is None:
            continue
        console.print(f"\n[bold]{m.local_id}[/bold]  {m.subject}")
        console.print(m.body.text or m.body.html or "[dim](empty)[/dim]")
        for a in m.attachments:
            console.print(f"  [dim]attachment:[/dim] {a.filename} ({a.content_type}, {a.size} bytes)")
