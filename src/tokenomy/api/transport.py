"""HTTP transport capability consumed by the client.

The client depends only on the Transport interface; TLS, connection pooling
and timeouts stay inside the concrete implementation. No retries happen
here or anywhere in the SDK.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from tokenomy.api.endpoints import HttpMethod
from tokenomy.exceptions import TransportError
from tokenomy.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    body: bytes


class Transport(ABC):
    """Abstract base class for sending a single HTTP request."""

    @abstractmethod
    def send(
        self,
        method: HttpMethod,
        path: str,
        headers: Mapping[str, str],
        params: Mapping[str, str],
    ) -> TransportResponse:
        """Send one request and return its status and raw body.

        Raises:
            TransportError: If no response could be obtained.
        """
        ...

    def close(self) -> None:
        """Release any held resources."""


class HttpxTransport(Transport):
    """Transport backed by httpx.Client.

    GET and DELETE carry params in the query string; POST sends them as a
    form-encoded body.

    Args:
        base_url: API address, e.g. https://api.tokenomy.com.
        insecure: Skip TLS certificate verification.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built httpx.Client (used by tests).
    """

    def __init__(
        self,
        base_url: str,
        insecure: bool = False,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url,
            verify=not insecure,
            timeout=timeout,
        )

    def send(
        self,
        method: HttpMethod,
        path: str,
        headers: Mapping[str, str],
        params: Mapping[str, str],
    ) -> TransportResponse:
        try:
            if method is HttpMethod.POST:
                response = self._client.request(
                    method.value, path, headers=dict(headers), data=dict(params)
                )
            else:
                response = self._client.request(
                    method.value, path, headers=dict(headers), params=dict(params)
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "transport_failed", method=method.value, path=path, error=str(exc)
            )
            raise TransportError(f"{method.value} {path}: {exc}") from exc

        return TransportResponse(
            status_code=response.status_code, body=response.content
        )

    def close(self) -> None:
        self._client.close()
