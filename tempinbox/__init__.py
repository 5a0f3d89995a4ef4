"""Disposable-inbox client: temporary mailboxes with stable local message ids."""

from tempinbox.errors import InboxError, InvalidState, TransportFailure, UnknownIdentifier
from tempinbox.gateway import HttpMailGateway, MailGateway, Message, MessageBody, MockMailGateway
from tempinbox.session import MailboxSession, PollListener, SessionState, create, login

__version__ = "0.1.0"

__all__ = [
    "HttpMailGateway",
    "InboxError",
    "InvalidState",
    "MailGateway",
    "MailboxSession",
    "Message",
    "MessageBody",
    "MockMailGateway",
    "PollListener",
    "SessionState",
    "TransportFailure",
    "UnknownIdentifier",
    "create",
    "login",
]
