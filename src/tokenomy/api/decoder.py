"""Uniform decoding of transport responses.

All endpoints share one outer envelope:

    success (status < 400):  {"data": <entity | list | pair-keyed mapping>}
    failure (status >= 400): {"code": <int>, "error": <message>}

The only endpoint-specific input is the expected shape of "data".
"""

import json
from decimal import Decimal
from functools import lru_cache
from typing import Any, get_origin

from pydantic import TypeAdapter

from tokenomy.api.transport import TransportResponse
from tokenomy.exceptions import ApiError, ProtocolError


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def _load_json(body: bytes) -> Any:
    # Decimal keeps JSON numbers exact until they become RationalAmount.
    return json.loads(body, parse_float=Decimal)


def _empty_collection(shape: Any) -> Any:
    """Empty list or dict for a collection shape, None for anything else."""
    origin = get_origin(shape) or shape
    if origin in (list, dict):
        return origin()
    return None


class ResponseDecoder:
    """Turns (status, body) into a typed payload or a structured error."""

    def decode(self, response: TransportResponse, shape: Any, operation: str) -> Any:
        """Decode a response into ``shape``.

        Args:
            response: Status code and raw body from the transport.
            shape: Expected type of the envelope's "data" field, e.g. Trade,
                list[Trade] or dict[str, list[Trade]].
            operation: Name of the calling operation, used in error messages.

        Returns:
            The validated payload.

        Raises:
            ApiError: If the status code is >= 400.
            ProtocolError: If the body does not match the envelope or shape.
        """
        if response.status_code >= 400:
            raise self.decode_error(response)

        try:
            envelope = _load_json(response.body)
        except ValueError as exc:
            raise ProtocolError(f"{operation}: malformed JSON response: {exc}") from exc

        if not isinstance(envelope, dict) or "data" not in envelope:
            raise ProtocolError(f"{operation}: response envelope has no data field")

        data = envelope["data"]
        if data is None:
            # The server encodes an empty list or mapping as null.
            data = _empty_collection(shape)

        try:
            return _adapter(shape).validate_python(data)
        except ValueError as exc:
            raise ProtocolError(f"{operation}: invalid response data: {exc}") from exc

    def decode_error(self, response: TransportResponse) -> ApiError:
        """Build the ApiError for a response with status >= 400."""
        text = response.body.decode("utf-8", errors="replace").strip()
        try:
            envelope = _load_json(response.body)
        except ValueError:
            envelope = None

        if not isinstance(envelope, dict):
            return ApiError(response.status_code, response.status_code, text)

        message = envelope.get("error") or envelope.get("message") or text
        code = envelope.get("code", response.status_code)
        try:
            code = int(code)
        except (TypeError, ValueError):
            code = response.status_code
        return ApiError(response.status_code, code, str(message))
