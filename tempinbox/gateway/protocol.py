"""Mail gateway protocol: the narrow interface a mailbox session talks to."""

from typing import Protocol

from tempinbox.gateway.models import MessageDetail, RemoteMessage


class MailGateway(Protocol):
    """Abstract async interface to a disposable-mail provider."""

    async def assign_random_address(self) -> str:
        """Ask the provider for a fresh random address (``local@domain``)."""
        ...

    async def list_messages(self, address: str) -> list[RemoteMessage]:
        """List the messages currently in ``address``'s mailbox, provider order."""
        ...

    async def read_message(self, address: str, remote_id: str | int) -> MessageDetail:
        """Fetch the bodies of one message by its provider identifier."""
        ...

    async def list_active_domains(self) -> list[str]:
        """Domains the provider currently issues addresses on (optional capability)."""
        ...
