"""Test doubles and payload builders shared by the test suites."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tokenomy.api.endpoints import HttpMethod
from tokenomy.api.signer import Clock
from tokenomy.api.transport import Transport, TransportResponse

FIXED_NOW = 1_700_000_000


class FixedClock(Clock):
    """Clock returning a settable Unix timestamp."""

    def __init__(self, now: int = FIXED_NOW) -> None:
        self.value = now

    def now(self) -> int:
        return self.value


@dataclass
class SentRequest:
    method: HttpMethod
    path: str
    headers: dict[str, str]
    params: dict[str, str]


@dataclass
class FakeTransport(Transport):
    """Transport that records requests and replays queued responses."""

    responses: list[TransportResponse] = field(default_factory=list)
    sent: list[SentRequest] = field(default_factory=list)
    closed: bool = False

    def queue(self, data: Any = None, status_code: int = 200, raw: bytes | None = None) -> None:
        body = raw if raw is not None else json.dumps({"data": data}).encode()
        self.responses.append(TransportResponse(status_code, body))

    def queue_error(self, status_code: int, code: int, error: str) -> None:
        body = json.dumps({"code": code, "error": error}).encode()
        self.responses.append(TransportResponse(status_code, body))

    def send(
        self,
        method: HttpMethod,
        path: str,
        headers: Mapping[str, str],
        params: Mapping[str, str],
    ) -> TransportResponse:
        self.sent.append(SentRequest(method, path, dict(headers), dict(params)))
        if not self.responses:
            raise AssertionError(f"unexpected request {method.value} {path}")
        return self.responses.pop(0)

    def close(self) -> None:
        self.closed = True


def trade_payload(**overrides: Any) -> dict[str, Any]:
    """JSON payload for an open bid on btc_idr with nothing filled yet."""
    payload: dict[str, Any] = {
        "id": 42,
        "pair": "btc_idr",
        "type": "bid",
        "method": "limit",
        "price": "500000000",
        "base_amount": "50000000",
        "base_filled": "0",
        "base_remain": "50000000",
        "coin_amount": "0.1",
        "coin_filled": "0",
        "coin_remain": "0.1",
        "base_asset": "idr",
        "coin_asset": "btc",
        "submit_time": FIXED_NOW,
    }
    payload.update(overrides)
    return payload
