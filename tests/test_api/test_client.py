"""Tests for Client public/private operations over a recording fake transport."""

import threading

import pytest

from helpers import FIXED_NOW, FakeTransport, FixedClock, trade_payload
from tokenomy.amount import RationalAmount
from tokenomy.api.client import Client
from tokenomy.api.endpoints import HttpMethod
from tokenomy.api.signer import canonicalize, sign
from tokenomy.config import Environment
from tokenomy.exceptions import (
    ApiError,
    AuthenticationError,
    AuthenticationRequiredError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidAssetError,
    InvalidPairError,
    InvalidRequestIDError,
    InvalidTradeIDError,
    ProtocolError,
    TransportError,
)
from tokenomy.models import SortOrder, TradeStatus, TradeType

USER = {"id": 7, "email": "trader@example.test", "balances": {"idr": "1000000", "btc": "0.5"}}


class TestSignedRequests:
    def test_private_call_is_signed(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue(USER)
        client.user_info()

        sent = transport.sent[0]
        assert sent.method is HttpMethod.GET
        assert sent.path == "/v2/user/info"
        assert sent.params == {"timestamp": str(FIXED_NOW)}
        assert sent.headers["Key"] == "test-token"
        assert sent.headers["Sign"] == sign(canonicalize(sent.params), "test-secret")

    def test_secret_never_sent(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(USER)
        client.user_info()
        sent = transport.sent[0]
        assert "test-secret" not in sent.headers.values()
        assert "test-secret" not in sent.params.values()

    def test_private_call_requires_credentials(
        self, public_env: Environment, transport: FakeTransport, clock: FixedClock
    ) -> None:
        client = Client(public_env, transport=transport, clock=clock)
        with pytest.raises(AuthenticationRequiredError):
            client.user_info()
        assert transport.sent == []

    def test_public_call_is_unsigned(
        self, public_env: Environment, transport: FakeTransport, clock: FixedClock
    ) -> None:
        client = Client(public_env, transport=transport, clock=clock)
        transport.queue({"pair": "btc_idr", "last": "500000000", "server_time": FIXED_NOW})
        tick = client.market_ticker("btc_idr")

        assert tick.last == RationalAmount("500000000")
        assert transport.sent[0].headers == {}
        assert transport.sent[0].params == {"pair": "btc_idr"}

    def test_transport_error_wrapped_with_operation(self, client: Client) -> None:
        class FailingTransport(FakeTransport):
            def send(self, method, path, headers, params):  # type: ignore[override]
                raise TransportError("connection reset")

        failing = Client(client.env, transport=FailingTransport(), clock=FixedClock())
        with pytest.raises(TransportError, match="user_info: connection reset"):
            failing.user_info()

    def test_api_error_surfaces(self, client: Client, transport: FakeTransport) -> None:
        transport.queue_error(402, 402, "insufficient balance")
        with pytest.raises(ApiError) as exc_info:
            client.user_info()
        assert exc_info.value.status_code == 402
        assert exc_info.value.message == "insufficient balance"


class TestAuthentication:
    def test_authenticate_caches_result(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue(USER)
        first = client.authenticate()
        second = client.authenticate()

        assert first is second
        assert first.user.id == 7
        assert first.user.balances["btc"] == RationalAmount("0.5")
        assert first.authenticated_at == FIXED_NOW
        assert len(transport.sent) == 1

    def test_authenticate_failure_wrapped(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue_error(401, 401, "invalid signature")
        with pytest.raises(AuthenticationError, match="invalid signature"):
            client.authenticate()
        assert client.auth is None

    def test_connect_authenticates_when_token_present(
        self, env: Environment, transport: FakeTransport, clock: FixedClock
    ) -> None:
        transport.queue(USER)
        client = Client.connect(env, transport=transport, clock=clock)
        assert client.user is not None
        assert client.user.email == "trader@example.test"

    def test_connect_without_token_skips_authentication(
        self, public_env: Environment, transport: FakeTransport, clock: FixedClock
    ) -> None:
        client = Client.connect(public_env, transport=transport, clock=clock)
        assert client.auth is None
        assert transport.sent == []

    def test_connect_configures_logging_at_env_level(
        self,
        monkeypatch: pytest.MonkeyPatch,
        transport: FakeTransport,
        clock: FixedClock,
    ) -> None:
        levels: list[str] = []
        monkeypatch.setattr("tokenomy.api.client.setup_logging", levels.append)
        env = Environment(
            token="",  # type: ignore[arg-type]
            secret="",  # type: ignore[arg-type]
            log_level="DEBUG",
        )
        Client.connect(env, transport=transport, clock=clock, configure_logging=True)
        Client.connect(env, transport=transport, clock=clock)
        assert levels == ["DEBUG"]

    def test_concurrent_authenticate_single_request(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue(USER)
        results = []

        def run() -> None:
            results.append(client.authenticate())

        threads = [threading.Thread(target=run) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(transport.sent) == 1
        assert all(result is results[0] for result in results)


class TestUserQueries:
    def test_empty_history_as_null(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(None)
        transport.queue(None)
        transport.queue(None)
        assert client.user_trades("btc_idr") == []
        assert client.user_orders_closed("btc_idr") == []
        assert client.user_orders_open() == {}

    def test_user_trades_history_without_status(
        self, client: Client, transport: FakeTransport
    ) -> None:
        finished = trade_payload(
            base_filled="50000000",
            base_remain="0",
            coin_filled="0.1",
            coin_remain="0",
            finish_time=FIXED_NOW + 100,
        )
        transport.queue([finished])
        trades = client.user_trades("btc_idr")
        assert trades[0].status is TradeStatus.FILLED
        assert trades[0].finish_time == FIXED_NOW + 100

    def test_user_trades_filters(self, client: Client, transport: FakeTransport) -> None:
        transport.queue([trade_payload(id=3), trade_payload(id=2)])
        trades = client.user_trades(
            "btc_idr", offset=10, limit=50, id_after=1, time_before=FIXED_NOW
        )

        assert [t.id for t in trades] == [3, 2]
        params = transport.sent[0].params
        assert params["pair"] == "btc_idr"
        assert params["offset"] == "10"
        assert params["limit"] == "50"
        assert params["id_after"] == "1"
        assert params["time_before"] == str(FIXED_NOW)
        assert params["sort_id_by"] == "desc"
        assert "id_before" not in params
        assert "time_after" not in params

    def test_user_orders_closed_composable_windows(
        self, client: Client, transport: FakeTransport
    ) -> None:
        closed = trade_payload(
            status="cancelled", finish_time=FIXED_NOW, base_filled="0",
            base_remain="50000000",
        )
        transport.queue([closed])
        trades = client.user_orders_closed(
            "btc_idr",
            time_after=FIXED_NOW - 3600,
            time_before=FIXED_NOW,
            id_after=10,
            id_before=100,
            sort=SortOrder.ASC,
        )

        assert trades[0].status is TradeStatus.CANCELLED
        params = transport.sent[0].params
        assert transport.sent[0].path == "/v2/user/orders/closed"
        assert params["time_after"] == str(FIXED_NOW - 3600)
        assert params["time_before"] == str(FIXED_NOW)
        assert params["id_after"] == "10"
        assert params["id_before"] == "100"
        assert params["sort_id_by"] == "asc"

    def test_user_orders_open_pair_mapping(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue({"btc_idr": [trade_payload()]})
        orders = client.user_orders_open("btc_idr")
        assert orders["btc_idr"][0].id == 42

    def test_user_order_info_requires_positive_id(
        self, client: Client, transport: FakeTransport
    ) -> None:
        with pytest.raises(InvalidTradeIDError):
            client.user_order_info("btc_idr", 0)
        assert transport.sent == []

    def test_inconsistent_snapshot_is_protocol_error(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue(trade_payload(base_filled="10"))
        with pytest.raises(ProtocolError):
            client.user_order_info("btc_idr", 42)

    def test_empty_pair_rejected_locally(
        self, client: Client, transport: FakeTransport
    ) -> None:
        with pytest.raises(InvalidPairError):
            client.user_trades("")
        with pytest.raises(InvalidPairError):
            client.market_depths("")
        assert transport.sent == []

    def test_user_transactions(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(
            {
                "deposit": {"btc": [{"id": 1, "asset": "btc", "amount": "0.2"}]},
                "withdraw": {
                    "btc": [
                        {
                            "id": 2,
                            "asset": "btc",
                            "amount": "0.1",
                            "fee": "0.0005",
                            "final_amount": "0.0995",
                        }
                    ]
                },
            }
        )
        history = client.user_transactions("btc", limit=5)
        assert history.deposit["btc"][0].amount == RationalAmount("0.2")
        assert history.withdraw["btc"][0].final_amount == RationalAmount("0.0995")
        assert transport.sent[0].params["asset"] == "btc"
        assert transport.sent[0].params["limit"] == "5"


class TestUserWithdraw:
    def test_missing_request_id_fails_before_transport(
        self, client: Client, transport: FakeTransport
    ) -> None:
        with pytest.raises(InvalidRequestIDError):
            client.user_withdraw("", "BTC", "1abc", 1)
        assert transport.sent == []

    def test_missing_asset(self, client: Client, transport: FakeTransport) -> None:
        with pytest.raises(InvalidAssetError):
            client.user_withdraw("req-1", "", "1abc", 1)
        assert transport.sent == []

    def test_missing_address(self, client: Client, transport: FakeTransport) -> None:
        with pytest.raises(InvalidAddressError):
            client.user_withdraw("req-1", "BTC", "", 1)
        assert transport.sent == []

    @pytest.mark.parametrize("amount", [None, 0, "-1"])
    def test_non_positive_amount(
        self, client: Client, transport: FakeTransport, amount: object
    ) -> None:
        with pytest.raises(InvalidAmountError):
            client.user_withdraw("req-1", "BTC", "1abc", amount)  # type: ignore[arg-type]
        assert transport.sent == []

    def test_withdraw_submitted(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(
            {
                "id": 99,
                "request_id": "req-1",
                "asset": "BTC",
                "address": "1abc",
                "amount": "1",
                "fee": "0.0005",
                "final_amount": "0.9995",
                "submit_time": FIXED_NOW,
            }
        )
        item = client.user_withdraw("req-1", "BTC", "1abc", "1.0", memo="note")

        assert item.id == 99
        assert item.final_amount == item.amount - item.fee
        sent = transport.sent[0]
        assert sent.method is HttpMethod.POST
        assert sent.path == "/v2/user/withdraw"
        assert sent.params == {
            "address": "1abc",
            "amount": "1",
            "asset": "BTC",
            "memo": "note",
            "request_id": "req-1",
            "timestamp": str(FIXED_NOW),
        }

    def test_withdraw_fee_mismatch_is_protocol_error(
        self, client: Client, transport: FakeTransport
    ) -> None:
        transport.queue({"id": 1, "amount": "1", "fee": "0.1", "final_amount": "1"})
        with pytest.raises(ProtocolError):
            client.user_withdraw("req-1", "BTC", "1abc", 1)


class TestMarketData:
    def test_market_trades(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(
            {
                "ask": [{"id": 1, "pair": "btc_idr", "price": "500000000", "coin_amount": "0.01"}],
                "bid": [],
            }
        )
        trades = client.market_trades("btc_idr", offset=0, limit=10)
        assert trades.ask[0].price == RationalAmount("500000000")
        assert transport.sent[0].params == {"pair": "btc_idr", "limit": "10"}

    def test_market_prices(self, client: Client, transport: FakeTransport) -> None:
        transport.queue({"btc_idr": "500000000.50"})
        prices = client.market_prices()
        assert prices["btc_idr"] == RationalAmount("500000000.5")

    def test_market_depths(self, client: Client, transport: FakeTransport) -> None:
        transport.queue({"ask": [{"price": "2", "amount": "1.5"}], "bid": []})
        depths = client.market_depths("btc_idr")
        assert depths.ask[0].amount == RationalAmount(3, 2)

    def test_market_info(self, client: Client, transport: FakeTransport) -> None:
        transport.queue([{"pair": "btc_idr", "base_asset": "idr", "coin_asset": "btc"}])
        info = client.market_info()
        assert info[0].coin_asset == "btc"

    def test_market_trades_open(self, client: Client, transport: FakeTransport) -> None:
        transport.queue({"ask": [trade_payload(id=7, type="ask")], "bid": [trade_payload()]})
        open_trades = client.market_trades_open("btc_idr")

        assert open_trades.ask[0].id == 7
        assert open_trades.ask[0].type is TradeType.ASK
        assert open_trades.bid[0].coin_remain == RationalAmount("0.1")
        sent = transport.sent[0]
        assert sent.path == "/v2/market/trades/open"
        assert sent.params == {"pair": "btc_idr"}
        assert "Sign" not in sent.headers

    def test_market_trades_open_requires_pair(
        self, client: Client, transport: FakeTransport
    ) -> None:
        with pytest.raises(InvalidPairError):
            client.market_trades_open("")
        assert transport.sent == []

    def test_market_summaries(self, client: Client, transport: FakeTransport) -> None:
        transport.queue(
            {
                "btc_idr": {"pair": "btc_idr", "last": "500000000", "volume_coin": "1.25"},
                "eth_idr": {"pair": "eth_idr", "last": "30000000"},
            }
        )
        summaries = client.market_summaries()

        assert set(summaries) == {"btc_idr", "eth_idr"}
        assert summaries["btc_idr"].volume_coin == RationalAmount(5, 4)
        assert transport.sent[0].path == "/v2/market/summaries"
        assert transport.sent[0].params == {}


def test_context_manager_closes_transport(
    env: Environment, transport: FakeTransport, clock: FixedClock
) -> None:
    with Client(env, transport=transport, clock=clock):
        pass
    assert transport.closed
