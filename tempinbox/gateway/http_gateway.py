"""HTTP mail gateway for a 1secmail-style JSON API (async, httpx)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from tempinbox.config import REQUEST_TIMEOUT, api_base_url
from tempinbox.errors import TransportFailure
from tempinbox.gateway.models import MessageDetail, RemoteMessage
from tempinbox.utils.addresses import split_address
from tempinbox.utils.logger import get_logger

logger = get_logger("tempinbox.gateway.http")

DEFAULT_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class GatewayResponse:
    """Status code and body; body is parsed JSON, or raw text when not JSON."""

    status: int
    data: Any


def _decode_body(response: httpx.Response) -> Any:
    """Parse JSON, falling back to raw text (some error payloads are not JSON)."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _active_domains(items: Any) -> list[str]:
    """Keep active, public domains; entries may be plain strings or domain objects."""
    domains: list[str] = []
    for item in items or []:
        if isinstance(item, str):
            domains.append(item)
        elif isinstance(item, dict) and item.get("domain"):
            if item.get("is_active", item.get("isActive", True)) and not item.get(
                "is_private", item.get("isPrivate", False)
            ):
                domains.append(item["domain"])
    return domains


class HttpMailGateway:
    """Mail gateway talking JSON over HTTP to one fixed scheme/host.

    Pass ``http_client`` to share a connection pool (or inject a mock
    transport in tests); otherwise the gateway owns its client and closes it
    in ``aclose()``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._base_url = base_url or api_base_url()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        logger.info("gateway.init", base_url=self._base_url, shared_client=not self._owns_client)

    async def __aenter__(self) -> HttpMailGateway:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        data: Any = None,
    ) -> GatewayResponse:
        """Issue one request; non-2xx and network errors raise TransportFailure."""
        headers = dict(DEFAULT_HEADERS)
        kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if method == "POST":
            headers["Content-Type"] = "application/json"
            kwargs["json"] = data
        action = (params or {}).get("action")
        try:
            response = await self._client.request(method, self._base_url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("gateway.request.network_error", action=action, error=str(e))
            raise TransportFailure(f"{method} {action} failed: {e}") from e

        body = _decode_body(response)
        if not response.is_success:
            logger.warning("gateway.request.http_error", action=action, status=response.status_code)
            raise TransportFailure(
                f"{method} {action} returned HTTP {response.status_code}",
                status=response.status_code,
                body=body,
            )
        logger.debug("gateway.request.ok", action=action, status=response.status_code)
        return GatewayResponse(status=response.status_code, data=body)

    async def assign_random_address(self) -> str:
        res = await self._request("GET", {"action": "genRandomMailbox", "count": 1})
        data = res.data
        address = data[0] if isinstance(data, list) and data else data
        if not isinstance(address, str) or "@" not in address:
            raise TransportFailure("Malformed address response", status=res.status, body=data)
        logger.info("gateway.assign_random_address", address=address)
        return address

    async def list_messages(self, address: str) -> list[RemoteMessage]:
        login, domain = split_address(address)
        res = await self._request("GET", {"action": "getMessages", "login": login, "domain": domain})
        if not isinstance(res.data, list):
            raise TransportFailure("Malformed message listing", status=res.status, body=res.data)
        try:
            messages = [RemoteMessage.model_validate(item) for item in res.data]
        except ValidationError as e:
            raise TransportFailure("Malformed message listing", status=res.status, body=res.data) from e
        logger.debug("gateway.list_messages", address=address, count=len(messages))
        return messages

    async def read_message(self, address: str, remote_id: str | int) -> MessageDetail:
        login, domain = split_address(address)
        res = await self._request(
            "GET",
            {"action": "readMessage", "login": login, "domain": domain, "id": remote_id},
        )
        if not isinstance(res.data, dict):
            raise TransportFailure("Malformed message detail", status=res.status, body=res.data)
        try:
            return MessageDetail.model_validate(res.data)
        except ValidationError as e:
            raise TransportFailure("Malformed message detail", status=res.status, body=res.data) from e

    async def list_active_domains(self) -> list[str]:
        res = await self._request("GET", {"action": "getDomainList"})
        domains = _active_domains(res.data if isinstance(res.data, list) else [])
        logger.debug("gateway.list_active_domains", count=len(domains))
        return domains
