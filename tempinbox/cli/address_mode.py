"""Address commands: create a random mailbox, list the provider's domains."""

import asyncio

import typer

from tempinbox.errors import TransportFailure
from tempinbox.session import create as create_session

from .shared import close_gateway, console, get_gateway, logger


def create() -> None:
    """Ask the provider for a new random address and print it."""
    log = logger.bind(command="create")

    async def _run() -> str:
        gateway = get_gateway()
        try:
            session = await create_session(gateway)
            return session.address
        finally:
            await close_gateway(gateway)

    try:
        address = asyncio.run(_run())
    except TransportFailure as e:
        console.print(f"[red]Could not create a mailbox: {e}[/red]")
        log.warning("create.transport_failure", status=e.status, error=str(e))
        raise typer.Exit(1)
    console.print(address)
    log.info("create.complete", address=address)


def domains() -> None:
    """List the domains the provider currently issues addresses on."""
    log = logger.bind(command="domains")

    async def _run() -> list[str]:
        gateway = get_gateway()
        try:
            return await gateway.list_active_domains()
        finally:
            await close_gateway(gateway)

    try:
        names = asyncio.run(_run())
    except TransportFailure as e:
        console.print(f"[red]Could not list domains: {e}[/red]")
        log.warning("domains.transport_failure", status=e.status, error=str(e))
        raise typer.Exit(1)
    for name in names:
        console.print(name)
    log.info("domains.complete", count=len(names))
