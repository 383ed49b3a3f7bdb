"""REST API v2 endpoint table and per-endpoint parameter builder.

Each Endpoint declares the parameter names it accepts. RequestParams refuses
anything else, so an unsupported combination fails at construction time
instead of being silently encoded and signed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tokenomy.amount import RationalAmount
from tokenomy.exceptions import UnsupportedParameterError

DEFAULT_LIMIT = 1000

PARAM_ADDRESS = "address"
PARAM_AMOUNT = "amount"
PARAM_ASSET = "asset"
PARAM_ID_AFTER = "id_after"
PARAM_ID_BEFORE = "id_before"
PARAM_LIMIT = "limit"
PARAM_MEMO = "memo"
PARAM_METHOD = "method"
PARAM_OFFSET = "offset"
PARAM_PAIR = "pair"
PARAM_PRICE = "price"
PARAM_REQUEST_ID = "request_id"
PARAM_SORT_ID_BY = "sort_id_by"
PARAM_TIME_AFTER = "time_after"
PARAM_TIME_BEFORE = "time_before"
PARAM_TIMESTAMP = "timestamp"
PARAM_TRADE_ID = "trade_id"

HEADER_KEY = "Key"
HEADER_SIGN = "Sign"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Endpoint:
    """A single REST API v2 route."""

    name: str
    method: HttpMethod
    path: str
    params: frozenset[str] = frozenset()
    private: bool = True

    def accepts(self, param: str) -> bool:
        return param in self.params


def _endpoint(
    name: str, method: HttpMethod, path: str, *params: str, private: bool = True
) -> Endpoint:
    return Endpoint(name, method, path, frozenset(params), private)


MARKET_DEPTHS = _endpoint(
    "market_depths", HttpMethod.GET, "/v2/market/depths", PARAM_PAIR, private=False
)
MARKET_INFO = _endpoint("market_info", HttpMethod.GET, "/v2/market/info", private=False)
MARKET_PRICES = _endpoint(
    "market_prices", HttpMethod.GET, "/v2/market/prices", private=False
)
MARKET_TICKER = _endpoint(
    "market_ticker", HttpMethod.GET, "/v2/market/ticker", PARAM_PAIR, private=False
)
MARKET_TRADES = _endpoint(
    "market_trades",
    HttpMethod.GET,
    "/v2/market/trades",
    PARAM_PAIR,
    PARAM_OFFSET,
    PARAM_LIMIT,
    private=False,
)
MARKET_TRADES_OPEN = _endpoint(
    "market_trades_open",
    HttpMethod.GET,
    "/v2/market/trades/open",
    PARAM_PAIR,
    private=False,
)
MARKET_SUMMARIES = _endpoint(
    "market_summaries", HttpMethod.GET, "/v2/market/summaries", private=False
)

USER_INFO = _endpoint("user_info", HttpMethod.GET, "/v2/user/info")
USER_TRADES = _endpoint(
    "user_trades",
    HttpMethod.GET,
    "/v2/user/trades",
    PARAM_PAIR,
    PARAM_OFFSET,
    PARAM_LIMIT,
    PARAM_ID_AFTER,
    PARAM_ID_BEFORE,
    PARAM_TIME_AFTER,
    PARAM_TIME_BEFORE,
    PARAM_SORT_ID_BY,
)
USER_ORDERS_CLOSED = _endpoint(
    "user_orders_closed",
    HttpMethod.GET,
    "/v2/user/orders/closed",
    PARAM_PAIR,
    PARAM_ID_AFTER,
    PARAM_ID_BEFORE,
    PARAM_TIME_AFTER,
    PARAM_TIME_BEFORE,
    PARAM_SORT_ID_BY,
)
USER_ORDERS_OPEN = _endpoint(
    "user_orders_open", HttpMethod.GET, "/v2/user/orders/open", PARAM_PAIR
)
USER_ORDER_INFO = _endpoint(
    "user_order_info", HttpMethod.GET, "/v2/user/order", PARAM_PAIR, PARAM_TRADE_ID
)
USER_TRANSACTIONS = _endpoint(
    "user_transactions",
    HttpMethod.GET,
    "/v2/user/transactions",
    PARAM_ASSET,
    PARAM_LIMIT,
)
USER_WITHDRAW = _endpoint(
    "user_withdraw",
    HttpMethod.POST,
    "/v2/user/withdraw",
    PARAM_REQUEST_ID,
    PARAM_ASSET,
    PARAM_ADDRESS,
    PARAM_MEMO,
    PARAM_AMOUNT,
)

_TRADE_PARAMS = (PARAM_PAIR, PARAM_METHOD, PARAM_AMOUNT, PARAM_PRICE)
TRADE_ASK = _endpoint("trade_ask", HttpMethod.POST, "/v2/trade/ask", *_TRADE_PARAMS)
TRADE_BID = _endpoint("trade_bid", HttpMethod.POST, "/v2/trade/bid", *_TRADE_PARAMS)
TRADE_CANCEL_ASK = _endpoint(
    "trade_cancel_ask",
    HttpMethod.DELETE,
    "/v2/trade/cancel/ask",
    PARAM_PAIR,
    PARAM_TRADE_ID,
)
TRADE_CANCEL_BID = _endpoint(
    "trade_cancel_bid",
    HttpMethod.DELETE,
    "/v2/trade/cancel/bid",
    PARAM_PAIR,
    PARAM_TRADE_ID,
)
TRADE_CANCEL_ALL = _endpoint(
    "trade_cancel_all", HttpMethod.DELETE, "/v2/trade/cancel/all"
)


def _render(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        raise TypeError("boolean parameters are not supported")
    if isinstance(value, float):
        raise TypeError("float parameters are not supported, use RationalAmount")
    if isinstance(value, (RationalAmount, int, str)):
        return str(value)
    raise TypeError(f"unsupported parameter type {type(value).__name__}")


class RequestParams:
    """Builder for the parameters of a single endpoint.

    Args:
        endpoint: The endpoint whose accepted parameter names are enforced.
    """

    def __init__(self, endpoint: Endpoint) -> None:
        self._endpoint = endpoint
        self._values: dict[str, str] = {}

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    def set(self, name: str, value: Any) -> "RequestParams":
        """Set a parameter, rejecting names the endpoint does not accept."""
        if not self._endpoint.accepts(name):
            raise UnsupportedParameterError(
                f"{self._endpoint.name} does not accept parameter {name!r}"
            )
        self._values[name] = _render(value)
        return self

    def set_positive(self, name: str, value: int) -> "RequestParams":
        """Set an integer filter only when it is positive."""
        if value > 0:
            self.set(name, value)
        return self

    def set_limit(self, limit: int) -> "RequestParams":
        """Set the limit only when it is within (0, DEFAULT_LIMIT]."""
        if 0 < limit <= DEFAULT_LIMIT:
            self.set(PARAM_LIMIT, limit)
        return self

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __len__(self) -> int:
        return len(self._values)
