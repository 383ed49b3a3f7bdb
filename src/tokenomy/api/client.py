"""Client for the Tokenomy REST API v2.

Public market endpoints need no credentials. Private user and trade
endpoints require both token and secret in the Environment; each private
call is signed with a fresh timestamp.
"""

import threading

from tokenomy.amount import AmountLike, RationalAmount
from tokenomy.api import endpoints as ep
from tokenomy.api.requester import Requester
from tokenomy.api.signer import Clock, SystemClock
from tokenomy.api.transport import HttpxTransport, Transport
from tokenomy.config import Environment
from tokenomy.exceptions import (
    AuthenticationError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidAssetError,
    InvalidPairError,
    InvalidRequestIDError,
    InvalidTradeIDError,
    TokenomyError,
)
from tokenomy.logging import get_logger, setup_logging
from tokenomy.models import (
    AssetTransactions,
    AuthResult,
    MarketDepths,
    MarketInfo,
    MarketTrades,
    SortOrder,
    Tick,
    Trade,
    TradeRequest,
    TradeResponse,
    TradesOpen,
    User,
    WithdrawItem,
)
from tokenomy.trade.lifecycle import TradeLifecycle

logger = get_logger(__name__)


def _require_pair(pair: str) -> None:
    if not pair:
        raise InvalidPairError("pair must not be empty")


class Client:
    """Synchronous REST API v2 client.

    Construction performs no network I/O. Use ``Client.connect`` to also
    verify the credentials when a token is configured.

    Args:
        env: Address and credentials; read from TOKENOMY_* variables if omitted.
        transport: Transport to send requests through; an HttpxTransport
            for ``env.address`` is created if omitted.
        clock: Timestamp source for request signing.
    """

    def __init__(
        self,
        env: Environment | None = None,
        transport: Transport | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._env = env or Environment()
        self._clock = clock or SystemClock()
        self._transport = transport or HttpxTransport(
            self._env.address,
            insecure=self._env.is_insecure,
            timeout=self._env.timeout_seconds,
        )
        self._requester = Requester(self._env, self._transport, self._clock)
        self._trades = TradeLifecycle(self._requester)
        self._auth: AuthResult | None = None
        self._auth_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        env: Environment | None = None,
        transport: Transport | None = None,
        clock: Clock | None = None,
        configure_logging: bool = False,
    ) -> "Client":
        """Create a client and authenticate it when a token is configured.

        With ``configure_logging`` the process-wide structlog setup is
        installed at ``env.log_level`` first. Libraries embedding the client
        leave it off and configure logging themselves.

        Raises:
            AuthenticationError: If the token and secret are rejected.
        """
        env = env or Environment()
        if configure_logging:
            setup_logging(env.log_level)
        client = cls(env, transport, clock)
        if client.env.has_token:
            client.authenticate()
        return client

    @property
    def env(self) -> Environment:
        return self._env

    @property
    def auth(self) -> AuthResult | None:
        """Result of the last successful authenticate(), if any."""
        return self._auth

    @property
    def user(self) -> User | None:
        return self._auth.user if self._auth else None

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self) -> AuthResult:
        """Verify the token and secret by fetching the user's information.

        Idempotent: the first successful result is cached and returned to
        every later caller. Concurrent callers wait on a single request.

        Raises:
            AuthenticationError: Wrapping the underlying failure.
        """
        with self._auth_lock:
            if self._auth is not None:
                return self._auth
            try:
                user = self.user_info()
            except TokenomyError as exc:
                logger.warning("authentication_failed", error=str(exc))
                raise AuthenticationError(f"authenticate: {exc}") from exc

            self._auth = AuthResult(user=user, authenticated_at=self._clock.now())
            logger.info("authenticated", user_id=user.id)
            return self._auth

    # ------------------------------------------------------------------
    # Public market data
    # ------------------------------------------------------------------

    def market_depths(self, pair: str) -> MarketDepths:
        """Fetch the order book depth for a pair."""
        _require_pair(pair)
        params = ep.RequestParams(ep.MARKET_DEPTHS).set(ep.PARAM_PAIR, pair)
        return self._requester.call(params, MarketDepths)

    def market_info(self) -> list[MarketInfo]:
        """Return information about every pair on the platform."""
        return self._requester.call(ep.RequestParams(ep.MARKET_INFO), list[MarketInfo])

    def market_prices(self) -> dict[str, RationalAmount]:
        """Return the latest price of every pair."""
        return self._requester.call(
            ep.RequestParams(ep.MARKET_PRICES), dict[str, RationalAmount]
        )

    def market_ticker(self, pair: str) -> Tick:
        _require_pair(pair)
        params = ep.RequestParams(ep.MARKET_TICKER).set(ep.PARAM_PAIR, pair)
        return self._requester.call(params, Tick)

    def market_trades(self, pair: str, offset: int = 0, limit: int = 0) -> MarketTrades:
        """Return completed market trades for a pair, grouped by ask and bid."""
        _require_pair(pair)
        params = ep.RequestParams(ep.MARKET_TRADES).set(ep.PARAM_PAIR, pair)
        params.set_positive(ep.PARAM_OFFSET, offset)
        params.set_limit(limit)
        return self._requester.call(params, MarketTrades)

    def market_trades_open(self, pair: str) -> TradesOpen:
        """Return the open orders in the market for a pair, grouped by ask and bid."""
        _require_pair(pair)
        params = ep.RequestParams(ep.MARKET_TRADES_OPEN).set(ep.PARAM_PAIR, pair)
        return self._requester.call(params, TradesOpen)

    def market_summaries(self) -> dict[str, Tick]:
        """Return the ticker of every pair, keyed by pair name."""
        return self._requester.call(
            ep.RequestParams(ep.MARKET_SUMMARIES), dict[str, Tick]
        )

    # ------------------------------------------------------------------
    # Private user endpoints
    # ------------------------------------------------------------------

    def user_info(self) -> User:
        """Fetch the user's information and balances."""
        return self._requester.call(ep.RequestParams(ep.USER_INFO), User)

    def user_trades(
        self,
        pair: str,
        offset: int = 0,
        limit: int = 0,
        id_after: int = 0,
        id_before: int = 0,
        time_after: int = 0,
        time_before: int = 0,
        sort: SortOrder = SortOrder.DESC,
    ) -> list[Trade]:
        """List the user's trade history, latest to oldest by default.

        Offset skips records; limit caps the result at DEFAULT_LIMIT. The
        id and time windows (Unix seconds) are independent filters and only
        positive values are sent.
        """
        _require_pair(pair)
        params = ep.RequestParams(ep.USER_TRADES).set(ep.PARAM_PAIR, pair)
        params.set_positive(ep.PARAM_OFFSET, offset)
        params.set_limit(limit)
        self._set_windows(params, id_after, id_before, time_after, time_before, sort)
        return self._requester.call(params, list[Trade])

    def user_orders_closed(
        self,
        pair: str,
        time_after: int = 0,
        time_before: int = 0,
        id_after: int = 0,
        id_before: int = 0,
        sort: SortOrder = SortOrder.DESC,
    ) -> list[Trade]:
        """List the user's filled or cancelled orders for a pair."""
        _require_pair(pair)
        params = ep.RequestParams(ep.USER_ORDERS_CLOSED).set(ep.PARAM_PAIR, pair)
        self._set_windows(params, id_after, id_before, time_after, time_before, sort)
        return self._requester.call(params, list[Trade])

    def user_orders_open(self, pair: str = "") -> dict[str, list[Trade]]:
        """List the user's open orders, keyed by pair.

        An empty pair returns open orders across all pairs.
        """
        params = ep.RequestParams(ep.USER_ORDERS_OPEN)
        if pair:
            params.set(ep.PARAM_PAIR, pair)
        return self._requester.call(params, dict[str, list[Trade]])

    def user_order_info(self, pair: str, trade_id: int) -> Trade:
        """Fetch a single order by pair and ID."""
        _require_pair(pair)
        if trade_id <= 0:
            raise InvalidTradeIDError(f"trade id must be positive, got {trade_id}")
        params = ep.RequestParams(ep.USER_ORDER_INFO)
        params.set(ep.PARAM_PAIR, pair).set(ep.PARAM_TRADE_ID, trade_id)
        return self._requester.call(params, Trade)

    def user_transactions(self, asset: str = "", limit: int = 0) -> AssetTransactions:
        """Fetch deposit and withdraw history, optionally for one asset."""
        params = ep.RequestParams(ep.USER_TRANSACTIONS)
        if asset:
            params.set(ep.PARAM_ASSET, asset)
        params.set_limit(limit)
        return self._requester.call(params, AssetTransactions)

    def user_withdraw(
        self,
        request_id: str,
        asset: str,
        address: str,
        amount: AmountLike | None,
        memo: str = "",
    ) -> WithdrawItem:
        """Withdraw an asset to another address.

        The request ID is the caller's idempotency key. Requires the
        "withdraw" permission on the API key.

        Raises:
            InvalidRequestIDError: If request_id is empty.
            InvalidAssetError: If asset is empty.
            InvalidAddressError: If address is empty.
            InvalidAmountError: If amount is missing or not positive.
        """
        if not request_id:
            raise InvalidRequestIDError("request id must not be empty")
        if not asset:
            raise InvalidAssetError("asset must not be empty")
        if not address:
            raise InvalidAddressError("wallet address must not be empty")
        value = RationalAmount.of(amount) if amount is not None else None
        if value is None or value.is_less_or_equal(0):
            raise InvalidAmountError(f"withdraw amount must be positive, got {value}")

        params = ep.RequestParams(ep.USER_WITHDRAW)
        params.set(ep.PARAM_REQUEST_ID, request_id)
        params.set(ep.PARAM_ASSET, asset)
        params.set(ep.PARAM_ADDRESS, address)
        params.set(ep.PARAM_MEMO, memo)
        params.set(ep.PARAM_AMOUNT, value)

        withdraw: WithdrawItem = self._requester.call(params, WithdrawItem)
        logger.info(
            "withdraw_submitted",
            request_id=request_id,
            asset=asset,
            amount=str(value),
            withdraw_id=withdraw.id,
        )
        return withdraw

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def trade_ask(self, request: TradeRequest) -> TradeResponse:
        return self._trades.trade_ask(request)

    def trade_bid(self, request: TradeRequest) -> TradeResponse:
        return self._trades.trade_bid(request)

    def trade_cancel(self, trade: Trade) -> Trade:
        return self._trades.cancel(trade)

    def trade_cancel_ask(self, pair: str, trade_id: int) -> Trade:
        return self._trades.cancel_ask(pair, trade_id)

    def trade_cancel_bid(self, pair: str, trade_id: int) -> Trade:
        return self._trades.cancel_bid(pair, trade_id)

    def trade_cancel_all(self) -> list[Trade]:
        return self._trades.cancel_all()

    @staticmethod
    def _set_windows(
        params: ep.RequestParams,
        id_after: int,
        id_before: int,
        time_after: int,
        time_before: int,
        sort: SortOrder,
    ) -> None:
        params.set_positive(ep.PARAM_ID_AFTER, id_after)
        params.set_positive(ep.PARAM_ID_BEFORE, id_before)
        params.set_positive(ep.PARAM_TIME_AFTER, time_after)
        params.set_positive(ep.PARAM_TIME_BEFORE, time_before)
        params.set(ep.PARAM_SORT_ID_BY, sort)
