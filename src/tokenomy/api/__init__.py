"""REST API v2 layer -- signed requests over an injectable transport."""

from tokenomy.api.client import Client
from tokenomy.api.decoder import ResponseDecoder
from tokenomy.api.signer import Clock, RequestSigner, SignedPayload, SystemClock
from tokenomy.api.transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "Client",
    "Clock",
    "HttpxTransport",
    "RequestSigner",
    "ResponseDecoder",
    "SignedPayload",
    "SystemClock",
    "Transport",
    "TransportResponse",
]
