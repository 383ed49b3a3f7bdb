"""Sign -> send -> decode pipeline shared by the client and trade lifecycle."""

from typing import Any

from tokenomy.api.decoder import ResponseDecoder
from tokenomy.api.endpoints import Endpoint, RequestParams
from tokenomy.api.signer import Clock, RequestSigner
from tokenomy.api.transport import Transport, TransportResponse
from tokenomy.config import Environment
from tokenomy.exceptions import AuthenticationRequiredError, TransportError
from tokenomy.logging import get_logger

logger = get_logger(__name__)


class Requester:
    """Performs one request/response cycle per call.

    Holds only immutable configuration and the transport handle; no state
    is kept between calls.

    Args:
        env: Client environment with address and credentials.
        transport: Transport used to send requests.
        clock: Timestamp source for signing.
        decoder: Response decoder; a default one is created if omitted.
    """

    def __init__(
        self,
        env: Environment,
        transport: Transport,
        clock: Clock | None = None,
        decoder: ResponseDecoder | None = None,
    ) -> None:
        self._env = env
        self._transport = transport
        self._signer = RequestSigner(env.secret.get_secret_value(), clock)
        self._decoder = decoder or ResponseDecoder()

    @property
    def env(self) -> Environment:
        return self._env

    def call(self, params: RequestParams, shape: Any) -> Any:
        """Send the request for ``params.endpoint`` and decode ``shape``."""
        endpoint = params.endpoint
        if endpoint.private:
            return self.private(endpoint, params, shape)
        return self.public(endpoint, params, shape)

    def public(self, endpoint: Endpoint, params: RequestParams, shape: Any) -> Any:
        response = self._send(endpoint, {}, params.to_dict())
        return self._decoder.decode(response, shape, endpoint.name)

    def private(self, endpoint: Endpoint, params: RequestParams, shape: Any) -> Any:
        """Sign and send a request that requires authentication.

        Raises:
            AuthenticationRequiredError: If token or secret is missing; no
                request is sent.
        """
        if not self._env.has_credentials:
            raise AuthenticationRequiredError(
                f"{endpoint.name}: token and secret are required for private calls"
            )

        signed = self._signer.sign(params.to_dict())
        headers = signed.headers(self._env.token.get_secret_value())
        ordered = dict(sorted(signed.params.items()))
        response = self._send(endpoint, headers, ordered)
        return self._decoder.decode(response, shape, endpoint.name)

    def _send(
        self, endpoint: Endpoint, headers: dict[str, str], params: dict[str, str]
    ) -> TransportResponse:
        try:
            response = self._transport.send(
                endpoint.method, endpoint.path, headers, params
            )
        except TransportError as exc:
            raise TransportError(f"{endpoint.name}: {exc}") from exc

        logger.debug(
            "request_sent",
            operation=endpoint.name,
            method=endpoint.method.value,
            path=endpoint.path,
            status_code=response.status_code,
        )
        return response
