"""Mail gateway: provider interface, HTTP and mock implementations."""

from tempinbox.gateway.http_gateway import GatewayResponse, HttpMailGateway
from tempinbox.gateway.mock import MockMailGateway
from tempinbox.gateway.models import (
    Attachment,
    Message,
    MessageBody,
    MessageDetail,
    RemoteMessage,
)
from tempinbox.gateway.protocol import MailGateway

__all__ = [
    "Attachment",
    "GatewayResponse",
    "HttpMailGateway",
    "MailGateway",
    "Message",
    "MessageBody",
    "MessageDetail",
    "MockMailGateway",
    "RemoteMessage",
]
