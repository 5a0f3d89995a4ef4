"""Mailbox sessions and the poll loop."""

from tempinbox.session.listener import PollListener
from tempinbox.session.mailbox import MailboxSession, SessionState, create, login

__all__ = [
    "MailboxSession",
    "PollListener",
    "SessionState",
    "create",
    "login",
]
