"""Ask/bid submission, cancellation and fill reconciliation.

Validation happens locally before any network call and raises a
ValidationError subclass. Every Trade decoded from the server is an
authoritative snapshot: there is no local fill ledger, and a snapshot that
breaks the fill invariants is rejected by the decoder as a protocol error.
"""

from tokenomy.api import endpoints as ep
from tokenomy.api.requester import Requester
from tokenomy.exceptions import (
    InvalidPairError,
    InvalidTradeIDError,
    InvalidTradeTypeError,
    ProtocolError,
)
from tokenomy.logging import get_logger
from tokenomy.models import Trade, TradeMethod, TradeRequest, TradeResponse, TradeType

logger = get_logger(__name__)

_SUBMIT_ENDPOINTS = {
    TradeType.ASK: ep.TRADE_ASK,
    TradeType.BID: ep.TRADE_BID,
}

_CANCEL_ENDPOINTS = {
    TradeType.ASK: ep.TRADE_CANCEL_ASK,
    TradeType.BID: ep.TRADE_CANCEL_BID,
}


def pack_trade_request(request: TradeRequest) -> ep.RequestParams:
    """Validate a trade request and build the parameters for its endpoint.

    Market orders carry pair, method and amount; limit orders add price.

    Raises:
        ValidationError: If the request is invalid.
    """
    valid = request.validate()
    params = ep.RequestParams(_SUBMIT_ENDPOINTS[valid.type])
    params.set(ep.PARAM_PAIR, valid.pair)
    params.set(ep.PARAM_METHOD, valid.method)
    params.set(ep.PARAM_AMOUNT, valid.amount)
    if valid.method is TradeMethod.LIMIT:
        params.set(ep.PARAM_PRICE, valid.price)
    return params


def pack_cancel(trade_type: TradeType, pair: str, trade_id: int) -> ep.RequestParams:
    """Build the parameters for cancelling a single trade.

    Raises:
        InvalidPairError: If pair is empty.
        InvalidTradeIDError: If trade_id is not positive.
    """
    if not pair:
        raise InvalidPairError("pair must not be empty")
    if trade_id <= 0:
        raise InvalidTradeIDError(f"trade id must be positive, got {trade_id}")

    params = ep.RequestParams(_CANCEL_ENDPOINTS[trade_type])
    params.set(ep.PARAM_PAIR, pair)
    params.set(ep.PARAM_TRADE_ID, trade_id)
    return params


class TradeLifecycle:
    """Submits and cancels orders through a signed Requester.

    Args:
        requester: Pipeline used for every private call.
    """

    def __init__(self, requester: Requester) -> None:
        self._requester = requester

    def submit(self, request: TradeRequest) -> TradeResponse:
        """Submit an ask or bid, chosen by ``request.type``."""
        params = pack_trade_request(request)
        response: TradeResponse = self._requester.call(params, TradeResponse)

        if response.order.id <= 0:
            raise ProtocolError(
                f"{params.endpoint.name}: server returned order without an id"
            )

        logger.info(
            "trade_submitted",
            operation=params.endpoint.name,
            pair=params[ep.PARAM_PAIR],
            method=params[ep.PARAM_METHOD],
            amount=params[ep.PARAM_AMOUNT],
            price=params[ep.PARAM_PRICE] if ep.PARAM_PRICE in params else None,
            trade_id=response.order.id,
            status=response.order.status.value,
        )
        return response

    def trade_ask(self, request: TradeRequest) -> TradeResponse:
        """Sell coin on the market.

        Raises:
            InvalidTradeTypeError: If the request is not an ask.
        """
        self._require_type(request, TradeType.ASK)
        return self.submit(request)

    def trade_bid(self, request: TradeRequest) -> TradeResponse:
        """Buy coin on the market.

        Raises:
            InvalidTradeTypeError: If the request is not a bid.
        """
        self._require_type(request, TradeType.BID)
        return self.submit(request)

    def cancel(self, trade: Trade) -> Trade:
        """Cancel an open trade using its type, pair and ID.

        Raises:
            InvalidTradeTypeError: If the trade carries no ask/bid type.
        """
        if trade.type is TradeType.ASK:
            return self.cancel_ask(trade.pair, trade.id)
        if trade.type is TradeType.BID:
            return self.cancel_bid(trade.pair, trade.id)
        raise InvalidTradeTypeError(f"cannot cancel trade with type {trade.type!r}")

    def cancel_ask(self, pair: str, trade_id: int) -> Trade:
        return self._cancel(TradeType.ASK, pair, trade_id)

    def cancel_bid(self, pair: str, trade_id: int) -> Trade:
        return self._cancel(TradeType.BID, pair, trade_id)

    def cancel_all(self) -> list[Trade]:
        """Cancel every open ask and bid of the authenticated user.

        Returns exactly the trades the server confirmed as cancelled, which
        may be fewer than were open. Callers re-query open orders to find
        any left behind; nothing is retried here.
        """
        params = ep.RequestParams(ep.TRADE_CANCEL_ALL)
        cancelled: list[Trade] = self._requester.call(params, list[Trade])
        logger.info("trades_cancelled_all", count=len(cancelled))
        return cancelled

    def _cancel(self, trade_type: TradeType, pair: str, trade_id: int) -> Trade:
        params = pack_cancel(trade_type, pair, trade_id)
        response: TradeResponse = self._requester.call(params, TradeResponse)
        logger.info(
            "trade_cancelled",
            operation=params.endpoint.name,
            pair=pair,
            trade_id=trade_id,
            status=response.order.status.value,
        )
        return response.order

    @staticmethod
    def _require_type(request: TradeRequest, expected: TradeType) -> None:
        try:
            actual = TradeType.parse(request.type)
        except ValueError as exc:
            raise InvalidTradeTypeError(str(exc)) from None
        if actual is not expected:
            raise InvalidTradeTypeError(
                f"{actual.value} request sent to {expected.value} endpoint"
            )
