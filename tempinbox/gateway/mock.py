"""Mock mail gateway: in-memory mailboxes, optionally seeded from a JSON file."""

import json
import secrets
from pathlib import Path
from typing import Any

from tempinbox.errors import TransportFailure
from tempinbox.gateway.models import MessageDetail, RemoteMessage
from tempinbox.utils.logger import get_logger

logger = get_logger("tempinbox.gateway.mock")


class MockMailGateway:
    """In-memory provider for tests and offline runs.

    Fixture format: ``{"domains": [...], "mailboxes": {address: [message, ...]}}``
    where each message uses the provider's wire keys (``id``, ``from``,
    ``subject``, ``date``, ``textBody``, ``htmlBody``).
    """

    def __init__(
        self,
        fixture_path: Path | None = None,
        domains: list[str] | None = None,
        random_address: str | None = None,
    ):
        self._domains = list(domains or ["example.com"])
        self._random_address = random_address
        self._mailboxes: dict[str, list[dict[str, Any]]] = {}
        self._failures: list[Exception] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        if fixture_path is not None:
            self._load_fixture(Path(fixture_path))

    def _load_fixture(self, path: Path) -> None:
        if not path.exists():
            logger.warning("mock_gateway.fixture_missing", fixture_path=str(path))
            return
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        self._domains = data.get("domains", self._domains)
        for address, items in (data.get("mailboxes") or {}).items():
            self._mailboxes[address] = list(items)
        logger.info(
            "mock_gateway.fixture_loaded",
            mailbox_count=len(self._mailboxes),
            message_count=sum(len(v) for v in self._mailboxes.values()),
        )

    def deliver(self, address: str, message: dict[str, Any]) -> None:
        """Append a message (wire-shaped dict) to a mailbox."""
        self._mailboxes.setdefault(address, []).append(message)

    def fail_next(self, error: Exception | None = None) -> None:
        """Make the next gateway call raise ``error`` (TransportFailure by default)."""
        self._failures.append(error or TransportFailure("mock failure", status=503, body="unavailable"))

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self._failures:
            raise self._failures.pop(0)

    async def assign_random_address(self) -> str:
        self._record("assign_random_address")
        address = self._random_address or f"{secrets.token_hex(5)}@{self._domains[0]}"
        self._mailboxes.setdefault(address, [])
        return address

    async def list_messages(self, address: str) -> list[RemoteMessage]:
        self._record("list_messages", address)
        return [RemoteMessage.model_validate(m) for m in self._mailboxes.get(address, [])]

    async def read_message(self, address: str, remote_id: str | int) -> MessageDetail:
        self._record("read_message", address, remote_id)
        for m in self._mailboxes.get(address, []):
            if m.get("id") == remote_id:
                return MessageDetail.model_validate(m)
        raise TransportFailure("Message not found", status=404, body="Message not found")

    async def list_active_domains(self) -> list[str]:
        self._record("list_active_domains")
        return list(self._domains)
