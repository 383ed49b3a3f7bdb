"""Request signing for the private REST API v2.

The signed payload is bound to the current Unix timestamp:

    1. set "timestamp" to clock.now(), overwriting any caller value
    2. form-encode the parameters with keys sorted (the canonical payload)
    3. HMAC-SHA512 the payload keyed by the secret, rendered as lowercase hex

Signing is pure given parameters, timestamp and secret, so it can be tested
without a network.
"""

import hashlib
import hmac
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlencode

from tokenomy.api.endpoints import HEADER_KEY, HEADER_SIGN, PARAM_TIMESTAMP


class Clock(ABC):
    """Source of the current Unix time in seconds."""

    @abstractmethod
    def now(self) -> int:
        ...


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


def canonicalize(params: Mapping[str, str]) -> str:
    """Form-encode params with keys sorted, spaces as '+'."""
    return urlencode(sorted(params.items()))


def sign(payload: str, secret: str) -> str:
    """Return the lowercase hex HMAC-SHA512 of payload keyed by secret."""
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha512
    ).hexdigest()


@dataclass(frozen=True)
class SignedPayload:
    """Canonical parameters plus their signature, ready to send."""

    params: dict[str, str]
    payload: str
    signature: str

    def headers(self, token: str) -> dict[str, str]:
        return {HEADER_KEY: token, HEADER_SIGN: self.signature}


class RequestSigner:
    """Binds a timestamp to request parameters and signs them.

    An empty secret still produces a signature; the server decides whether
    to accept it.

    Args:
        secret: The API secret used as the HMAC key.
        clock: Source of the timestamp; defaults to the system clock.
    """

    def __init__(self, secret: str, clock: Clock | None = None) -> None:
        self._secret = secret
        self._clock = clock or SystemClock()

    def __repr__(self) -> str:
        return f"RequestSigner(clock={self._clock!r})"

    def sign(self, params: Mapping[str, str] | None = None) -> SignedPayload:
        signed = dict(params or {})
        signed[PARAM_TIMESTAMP] = str(self._clock.now())
        payload = canonicalize(signed)
        return SignedPayload(
            params=signed,
            payload=payload,
            signature=sign(payload, self._secret),
        )
