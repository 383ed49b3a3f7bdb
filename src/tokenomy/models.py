"""Domain records produced and validated by the SDK.

CRITICAL: All monetary values use RationalAmount. Never use float for prices,
amounts, fills or fees.

Records are frozen dataclasses. Responses are decoded into them through
pydantic TypeAdapters (see tokenomy.api.decoder), which also run the
invariant checks in __post_init__. A record that violates an invariant is a
protocol error, never silently corrected.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Annotated, Any

from pydantic import PlainValidator

from tokenomy.amount import AmountLike, RationalAmount
from tokenomy.exceptions import (
    InvalidAmountError,
    InvalidPairError,
    InvalidPriceError,
    InvalidTradeMethodError,
    InvalidTradeTypeError,
)


class TradeType(str, Enum):
    """Order direction: ask sells coin, bid buys coin."""

    ASK = "ask"
    BID = "bid"

    @classmethod
    def parse(cls, value: Any) -> "TradeType":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        text = _TRADE_TYPE_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid trade type {value!r}") from None


_TRADE_TYPE_ALIASES = {"sell": "ask", "buy": "bid"}


class TradeMethod(str, Enum):
    """Order pricing method."""

    LIMIT = "limit"
    MARKET = "market"

    @classmethod
    def parse(cls, value: Any) -> "TradeMethod":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if not text:
            return cls.MARKET
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid trade method {value!r}") from None


class TradeStatus(str, Enum):
    """Order state. Open orders carry no status on the wire."""

    OPEN = "open"
    FILLED = "filled"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "TradeStatus":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if not text:
            return cls.OPEN
        if text == "canceled":
            return cls.CANCELLED
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"invalid trade status {value!r}") from None


class SortOrder(str, Enum):
    """Result ordering by ID."""

    ASC = "asc"
    DESC = "desc"


def _optional(parse: Any) -> Any:
    def validate(value: Any) -> Any:
        if value is None:
            return None
        return parse(value)

    return validate


TradeTypeField = Annotated[TradeType | None, PlainValidator(_optional(TradeType.parse))]
TradeMethodField = Annotated[
    TradeMethod | None, PlainValidator(_optional(TradeMethod.parse))
]
def _status_or_none(value: Any) -> TradeStatus | None:
    # Empty means "not reported"; Trade infers it from finish_time.
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return TradeStatus.parse(value)


TradeStatusField = Annotated[TradeStatus | None, PlainValidator(_status_or_none)]


def _check_sum(
    prefix: str,
    amount: RationalAmount | None,
    filled: RationalAmount | None,
    remain: RationalAmount | None,
) -> None:
    """Enforce amount == filled + remain when all three are reported."""
    if amount is None or filled is None or remain is None:
        return
    if amount != filled + remain:
        raise ValueError(
            f"{prefix}_amount {amount} != {prefix}_filled {filled}"
            f" + {prefix}_remain {remain}"
        )


@dataclass(frozen=True)
class Trade:
    """Snapshot of a single ask or bid order, open or closed.

    Every query returns a fresh snapshot; the client never mutates a Trade.
    Fill accounting is validated on construction:
        base_amount == base_filled + base_remain
        coin_amount == coin_filled + coin_remain
    A filled trade has nothing remaining; an open trade with a positive
    amount still has something remaining and no finish time.

    History records may omit the status. It is then inferred: open while
    finish_time is 0, otherwise filled when nothing remains and cancelled
    when something does.
    """

    price: RationalAmount | None = None

    base_amount: RationalAmount | None = None
    base_filled: RationalAmount | None = None
    base_remain: RationalAmount | None = None

    coin_amount: RationalAmount | None = None
    coin_filled: RationalAmount | None = None
    coin_remain: RationalAmount | None = None

    pair: str = ""
    type: TradeTypeField = None
    method: TradeMethodField = None
    status: TradeStatusField = None

    base_asset: str = ""
    coin_asset: str = ""

    id: int = 0
    submit_time: int = 0  # Unix seconds
    finish_time: int = 0  # Unix seconds, 0 while open

    def __post_init__(self) -> None:
        _check_sum("base", self.base_amount, self.base_filled, self.base_remain)
        _check_sum("coin", self.coin_amount, self.coin_filled, self.coin_remain)

        if self.status is None:
            object.__setattr__(self, "status", self._inferred_status())

        if self.status is TradeStatus.FILLED:
            for name, remain in (
                ("base_remain", self.base_remain),
                ("coin_remain", self.coin_remain),
            ):
                if remain is not None and not remain.is_zero():
                    raise ValueError(f"filled trade {self.id} has {name} {remain}")
        elif self.status is TradeStatus.OPEN:
            if self.finish_time:
                raise ValueError(f"open trade {self.id} has finish_time set")
            for name, amount, remain in (
                ("base", self.base_amount, self.base_remain),
                ("coin", self.coin_amount, self.coin_remain),
            ):
                if (
                    amount is not None
                    and amount.is_positive()
                    and remain is not None
                    and not remain.is_positive()
                ):
                    raise ValueError(
                        f"open trade {self.id} has non-positive {name}_remain {remain}"
                    )

    def _inferred_status(self) -> TradeStatus:
        if not self.finish_time:
            return TradeStatus.OPEN
        remains = (self.base_remain, self.coin_remain)
        if any(remain is not None and not remain.is_zero() for remain in remains):
            return TradeStatus.CANCELLED
        return TradeStatus.FILLED

    @property
    def is_open(self) -> bool:
        return self.status is TradeStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return not self.is_open


@dataclass(frozen=True)
class TradeRequest:
    """Caller-constructed intent to sell (ask) or buy (bid) coin.

    The pair has the form "coin_base". For a limit order both amount and
    price must be positive; for a market order (the default) only amount is
    used and price must be absent or zero.
    """

    pair: str
    type: TradeType | str
    amount: AmountLike | None = None
    price: AmountLike | None = None
    method: TradeMethod | str | None = None

    def validate(self) -> "TradeRequest":
        """Return a normalized copy, or raise a ValidationError subclass.

        The returned request carries resolved enums and RationalAmount values.
        """
        if not self.pair or not self.pair.strip():
            raise InvalidPairError("pair must not be empty")

        try:
            trade_type = TradeType.parse(self.type)
        except ValueError as exc:
            raise InvalidTradeTypeError(str(exc)) from None

        try:
            method = TradeMethod.parse(self.method or "")
        except ValueError as exc:
            raise InvalidTradeMethodError(str(exc)) from None

        amount = RationalAmount.of(self.amount) if self.amount is not None else None
        price = RationalAmount.of(self.price) if self.price is not None else None

        if amount is None or not amount.is_positive():
            raise InvalidAmountError(f"amount must be positive, got {amount}")

        if method is TradeMethod.LIMIT:
            if price is None or not price.is_positive():
                raise InvalidPriceError(
                    f"limit order requires a positive price, got {price}"
                )
        elif price is not None and not price.is_zero():
            raise InvalidPriceError(f"market order must not set a price, got {price}")

        return replace(
            self,
            pair=self.pair.strip(),
            type=trade_type,
            method=method,
            amount=amount,
            price=price if method is TradeMethod.LIMIT else None,
        )


@dataclass(frozen=True)
class TradeResponse:
    """Result of an ask or bid submission or a single cancellation."""

    order: Trade
    balances: dict[str, RationalAmount] = field(default_factory=dict)


@dataclass(frozen=True)
class TradePrice:
    """A completed trade in the public market."""

    id: int = 0
    pair: str = ""
    trade_time: int = 0
    base_amount: RationalAmount | None = None
    coin_amount: RationalAmount | None = None
    price: RationalAmount | None = None


@dataclass(frozen=True)
class MarketTrades:
    """Completed market trades grouped by ask and bid."""

    ask: list[TradePrice] = field(default_factory=list)
    bid: list[TradePrice] = field(default_factory=list)


@dataclass(frozen=True)
class TradesOpen:
    """Open market orders for a pair, grouped by ask and bid."""

    ask: list[Trade] = field(default_factory=list)
    bid: list[Trade] = field(default_factory=list)


@dataclass(frozen=True)
class DepthEntry:
    price: RationalAmount
    amount: RationalAmount


@dataclass(frozen=True)
class MarketDepths:
    """Order book depth for a single pair."""

    ask: list[DepthEntry] = field(default_factory=list)
    bid: list[DepthEntry] = field(default_factory=list)


@dataclass(frozen=True)
class MarketInfo:
    """Trading constraints for a single pair."""

    pair: str = ""
    base_asset: str = ""
    coin_asset: str = ""
    price_round: int = 0
    min_base_amount: RationalAmount | None = None
    min_coin_amount: RationalAmount | None = None
    trade_fee_percent: RationalAmount | None = None


@dataclass(frozen=True)
class Tick:
    """Ticker summary for a single pair."""

    pair: str = ""
    high: RationalAmount | None = None
    low: RationalAmount | None = None
    last: RationalAmount | None = None
    buy: RationalAmount | None = None
    sell: RationalAmount | None = None
    volume_base: RationalAmount | None = None
    volume_coin: RationalAmount | None = None
    server_time: int = 0


@dataclass(frozen=True)
class WithdrawItem:
    """A single withdraw transaction.

    Invariant: final_amount == amount - fee, when all three are reported.
    """

    amount: RationalAmount | None = None
    fee: RationalAmount | None = None
    final_amount: RationalAmount | None = None

    request_id: str = ""
    requester_ip: str = ""
    asset: str = ""
    network: str = ""
    status: str = ""
    address: str = ""
    address_type: str = ""
    memo: str = ""

    id: int = 0
    submit_time: int = 0
    success_time: int = 0

    def __post_init__(self) -> None:
        if self.amount is None or self.fee is None or self.final_amount is None:
            return
        if self.final_amount != self.amount - self.fee:
            raise ValueError(
                f"withdraw {self.id} final_amount {self.final_amount}"
                f" != amount {self.amount} - fee {self.fee}"
            )


@dataclass(frozen=True)
class DepositItem:
    """A single deposit transaction."""

    amount: RationalAmount | None = None
    asset: str = ""
    network: str = ""
    status: str = ""
    address: str = ""
    memo: str = ""
    tx_id: str = ""
    id: int = 0
    submit_time: int = 0
    success_time: int = 0


@dataclass(frozen=True)
class AssetTransactions:
    """Deposit and withdraw history, keyed by asset name."""

    deposit: dict[str, list[DepositItem]] = field(default_factory=dict)
    withdraw: dict[str, list[WithdrawItem]] = field(default_factory=dict)


@dataclass(frozen=True)
class User:
    """Authenticated user's profile and balances."""

    id: int = 0
    email: str = ""
    name: str = ""
    balances: dict[str, RationalAmount] = field(default_factory=dict)
    balances_hold: dict[str, RationalAmount] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthResult:
    """Immutable result of verifying the token and secret with the server."""

    user: User
    authenticated_at: int  # Unix seconds
