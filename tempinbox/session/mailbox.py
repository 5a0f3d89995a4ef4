"""Mailbox session: address, remote→local identifier map, deduplicated messages.

All mutation happens on one asyncio event loop. The only suspension points
are the gateway awaits; the dedup check and the insert of a new mapping in
``fetch`` run without an ``await`` between them, so concurrent fetches (a
running listener plus direct calls) cannot assign two local identifiers to
one remote message.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from tempinbox.config import ID_ENCODING, ID_LENGTH_BYTES
from tempinbox.errors import InvalidState, UnknownIdentifier
from tempinbox.gateway.models import Message, MessageBody
from tempinbox.gateway.protocol import MailGateway
from tempinbox.session.listener import BatchHandler, ErrorHandler, PollListener
from tempinbox.utils.addresses import split_address
from tempinbox.utils.identifiers import ENCODINGS, generate_token
from tempinbox.utils.logger import get_logger

logger = get_logger("tempinbox.session")

ReadyHandler = Callable[[str], Any]

EVENTS = ("ready",)


class SessionState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    READY = "ready"


class MailboxSession:
    """Client-side state of one disposable mailbox."""

    def __init__(
        self,
        gateway: MailGateway,
        id_length_bytes: int = ID_LENGTH_BYTES,
        id_encoding: str = ID_ENCODING,
    ):
        if id_length_bytes < 1:
            raise ValueError(f"id_length_bytes must be positive, got {id_length_bytes}")
        if id_encoding not in ENCODINGS:
            raise ValueError(f"Unsupported id encoding: {id_encoding!r}")
        self._gateway = gateway
        self._id_length_bytes = id_length_bytes
        self._id_encoding = id_encoding
        self._state = SessionState.UNCONNECTED
        self._address: str | None = None
        self._remote_index: dict[str | int, str] = {}
        self._messages: dict[str, Message] = {}
        self._ready_handlers: list[ReadyHandler] = []
        self._ready_emitted = False
        self._handler_tasks: set[asyncio.Task] = set()
        self._listener: PollListener | None = None
        self._log = logger

    def __repr__(self) -> str:
        return f"<MailboxSession {self._address or '-'} state={self._state.value} messages={len(self._messages)}>"

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, local_id: object) -> bool:
        return local_id in self._messages

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def gateway(self) -> MailGateway:
        return self._gateway

    @property
    def messages(self) -> list[Message]:
        """Known messages in first-seen order."""
        return list(self._messages.values())

    @property
    def remote_index(self) -> Mapping[str | int, str]:
        """Read-only view of remote id → local id."""
        return MappingProxyType(self._remote_index)

    def get(self, local_id: str) -> Message:
        try:
            return self._messages[local_id]
        except KeyError:
            raise UnknownIdentifier(local_id) from None

    # -- events ---------------------------------------------------------------

    def on(self, event: str, handler: ReadyHandler) -> None:
        """Subscribe to ``"ready"``; the handler receives the address.

        Handlers always run from the event loop, never inside this call. A
        handler added after the session became ready is still called once;
        such a late registration must run on the event loop (else InvalidState).
        """
        if event not in EVENTS:
            raise ValueError(f"Unsupported event: {event!r}")
        if self._ready_emitted:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise InvalidState("on('ready') after ready needs a running event loop") from None
            self._ready_handlers.append(handler)
            loop.call_soon(self._run_ready_handler, handler)
            return
        self._ready_handlers.append(handler)

    def _emit_ready(self) -> None:
        self._ready_emitted = True
        for handler in list(self._ready_handlers):
            self._run_ready_handler(handler)

    def _run_ready_handler(self, handler: ReadyHandler) -> None:
        try:
            result = handler(self._address)
        except Exception:
            self._log.exception("session.ready_handler_error", address=self._address)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._handler_tasks.add(task)
            task.add_done_callback(self._handler_tasks.discard)

    # -- connect --------------------------------------------------------------

    async def connect(self, address: str | None = None) -> str:
        """Adopt ``address`` or ask the gateway for a random one. Single use."""
        if self._state is not SessionState.UNCONNECTED:
            raise InvalidState(f"connect() already called (state={self._state.value})")
        if address is not None:
            split_address(address)
            self._become_ready(address, assigned=False)
            return address

        self._state = SessionState.CONNECTING
        self._log.info("session.connect.start")
        # On failure the session stays CONNECTING; connect() cannot be retried.
        address = await self._gateway.assign_random_address()
        self._become_ready(address, assigned=True)
        return address

    def _become_ready(self, address: str, assigned: bool) -> None:
        self._address = address
        self._state = SessionState.READY
        self._log = logger.bind(address=address)
        self._log.info("session.ready", assigned=assigned)
        asyncio.get_running_loop().call_soon(self._emit_ready)

    def _require_ready(self, operation: str) -> None:
        if self._state is not SessionState.READY:
            raise InvalidState(f"{operation}() requires a connected session (state={self._state.value})")

    # -- fetch / read ---------------------------------------------------------

    async def fetch(self) -> list[Message]:
        """List the mailbox and register unseen messages; returns every known message."""
        self._require_ready("fetch")
        remote_messages = await self._gateway.list_messages(self._address)

        # No await below: check-then-insert must not interleave with another fetch.
        added = 0
        for remote in remote_messages:
            if remote.remote_id in self._remote_index:
                continue
            local_id = generate_token(self._id_length_bytes, self._messages, self._id_encoding)
            self._remote_index[remote.remote_id] = local_id
            self._messages[local_id] = Message(
                local_id=local_id,
                remote_id=remote.remote_id,
                from_=remote.from_,
                subject=remote.subject,
                date=remote.date,
            )
            added += 1

        self._log.debug("session.fetch.complete", listed=len(remote_messages), added=added, total=len(self._messages))
        return self.messages

    async def read(self, local_id: str) -> Message:
        """Fetch and store the body of a known message; always hits the gateway."""
        self._require_ready("read")
        message = self._messages.get(local_id)
        if message is None:
            raise UnknownIdentifier(local_id)
        detail = await self._gateway.read_message(self._address, message.remote_id)
        message.body = MessageBody(text=detail.text_body, html=detail.html_body)
        message.attachments = list(detail.attachments)
        self._log.debug("session.read", local_id=local_id, attachments=len(message.attachments))
        return message

    async def list_domains(self) -> list[str]:
        """Domains the provider currently issues addresses on."""
        list_active_domains = getattr(self._gateway, "list_active_domains", None)
        if list_active_domains is None:
            return []
        return await list_active_domains()

    # -- listener -------------------------------------------------------------

    @property
    def listening(self) -> bool:
        return self._listener is not None and self._listener.active

    def start_listener(
        self,
        interval_ms: int,
        on_batch: BatchHandler,
        on_error: ErrorHandler | None = None,
    ) -> PollListener:
        """Poll every ``interval_ms`` after each fetch completes; report new messages only."""
        self._require_ready("start_listener")
        if self.listening:
            raise InvalidState("A listener is already running; call stop_listener() first")
        self._listener = PollListener(self)
        self._listener.start(interval_ms, on_batch, on_error)
        return self._listener

    def stop_listener(self) -> None:
        """Stop the poll loop; safe to call repeatedly or before start."""
        if self._listener is not None:
            self._listener.stop()


async def create(gateway: MailGateway, **session_kwargs: Any) -> MailboxSession:
    """New session on a provider-assigned random address."""
    session = MailboxSession(gateway, **session_kwargs)
    await session.connect()
    return session


async def login(gateway: MailGateway, address: str, **session_kwargs: Any) -> MailboxSession:
    """New session on an existing address (no remote call)."""
    session = MailboxSession(gateway, **session_kwargs)
    await session.connect(address)
    return session
