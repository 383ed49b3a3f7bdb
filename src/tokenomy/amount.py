"""Exact rational amounts for prices, volumes, fills and fees.

CRITICAL: Amounts are never represented as binary floats. Every value is an
exact reduced fraction, and no operation here rounds.
"""

from decimal import Decimal
from fractions import Fraction
from functools import total_ordering
from typing import Any, Union

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from tokenomy.exceptions import InvalidAmountFormatError

AmountLike = Union["RationalAmount", Fraction, Decimal, int, str]


def _to_fraction(value: Any) -> Fraction:
    """Convert a supported value into a Fraction, rejecting floats."""
    if isinstance(value, RationalAmount):
        return value._value
    if isinstance(value, bool):
        raise InvalidAmountFormatError(f"cannot use bool {value!r} as an amount")
    if isinstance(value, (int, Fraction)):
        return Fraction(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidAmountFormatError(f"amount must be finite, got {value}")
        return Fraction(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmountFormatError("empty amount string")
        try:
            return Fraction(text)
        except (ValueError, ZeroDivisionError) as exc:
            raise InvalidAmountFormatError(f"invalid amount {value!r}") from exc
    if isinstance(value, float):
        raise InvalidAmountFormatError(
            f"float {value!r} cannot be an exact amount, pass a string instead"
        )
    raise InvalidAmountFormatError(f"unsupported amount type {type(value).__name__}")


def _format(value: Fraction) -> str:
    """Render a fraction as an exact decimal, or as n/d when non-terminating."""
    num, den = value.numerator, value.denominator
    if den == 1:
        return str(num)

    rest, twos, fives = den, 0, 0
    while rest % 2 == 0:
        rest //= 2
        twos += 1
    while rest % 5 == 0:
        rest //= 5
        fives += 1
    if rest != 1:
        return f"{num}/{den}"

    scale = max(twos, fives)
    digits = str(abs(num) * (10**scale // den)).rjust(scale + 1, "0")
    whole, frac = digits[:-scale], digits[-scale:].rstrip("0")
    sign = "-" if num < 0 else ""
    if not frac:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac}"


@total_ordering
class RationalAmount:
    """Arbitrary-precision rational number used for every price and amount.

    Equality and ordering are defined on the reduced fraction, so
    RationalAmount("1.50") == RationalAmount("1.5") == RationalAmount(3, 2).

    Args:
        value: Decimal or fraction string, int, Decimal, Fraction, or another
            RationalAmount. When ``denominator`` is given, ``value`` must be
            an int numerator.
        denominator: Optional integer denominator.
    """

    __slots__ = ("_value",)

    def __init__(self, value: AmountLike = 0, denominator: int | None = None) -> None:
        if denominator is None:
            self._value = _to_fraction(value)
            return
        if (
            not isinstance(value, int)
            or isinstance(value, bool)
            or not isinstance(denominator, int)
            or isinstance(denominator, bool)
        ):
            raise TypeError("numerator and denominator must both be int")
        self._value = Fraction(value, denominator)

    @classmethod
    def of(cls, value: AmountLike) -> "RationalAmount":
        """Return value unchanged if it is already a RationalAmount."""
        if isinstance(value, RationalAmount):
            return value
        return cls(value)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def numerator(self) -> int:
        return self._value.numerator

    @property
    def denominator(self) -> int:
        return self._value.denominator

    def as_fraction(self) -> Fraction:
        return self._value

    def to_decimal(self) -> Decimal:
        """Return the exact Decimal value.

        Raises:
            ValueError: If the value has no terminating decimal expansion.
        """
        text = _format(self._value)
        if "/" in text:
            raise ValueError(f"{text} has no exact decimal representation")
        return Decimal(text)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_zero(self) -> bool:
        return self._value == 0

    def is_positive(self) -> bool:
        return self._value > 0

    def is_negative(self) -> bool:
        return self._value < 0

    def is_equal(self, other: AmountLike) -> bool:
        return self._value == _to_fraction(other)

    def is_less(self, other: AmountLike) -> bool:
        return self._value < _to_fraction(other)

    def is_less_or_equal(self, other: AmountLike) -> bool:
        return self._value <= _to_fraction(other)

    def is_greater(self, other: AmountLike) -> bool:
        return self._value > _to_fraction(other)

    def is_greater_or_equal(self, other: AmountLike) -> bool:
        return self._value >= _to_fraction(other)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _coerce(self, other: Any) -> Fraction | None:
        if isinstance(other, float):
            return None
        if isinstance(other, (RationalAmount, Fraction, Decimal, int)):
            return _to_fraction(other)
        return None

    def __add__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(self._value + value)

    __radd__ = __add__

    def __sub__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(self._value - value)

    def __rsub__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(value - self._value)

    def __mul__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(self._value * value)

    __rmul__ = __mul__

    def __truediv__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(self._value / value)

    def __rtruediv__(self, other: Any) -> "RationalAmount":
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return RationalAmount(value / self._value)

    def __neg__(self) -> "RationalAmount":
        return RationalAmount(-self._value)

    def __abs__(self) -> "RationalAmount":
        return RationalAmount(abs(self._value))

    # ------------------------------------------------------------------
    # Comparison and hashing
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self._value == value

    def __lt__(self, other: Any) -> bool:
        value = self._coerce(other)
        if value is None:
            return NotImplemented
        return self._value < value

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return self._value != 0

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return _format(self._value)

    def __repr__(self) -> str:
        return f"RationalAmount('{self}')"

    # ------------------------------------------------------------------
    # pydantic integration
    # ------------------------------------------------------------------

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls.of,
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


ZERO = RationalAmount(0)
