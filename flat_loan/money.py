"""Currency-scale decimal amounts.

A ``Money`` value is always quantized to the number of decimal places of its
currency. Operations that can produce more digits than the currency supports
take the rounding mode as an explicit argument. All arithmetic runs in this
module's own decimal context, so the caller's thread context never changes a
result.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Union

from .exceptions import CurrencyMismatchError, InvalidAmountError

Number = Union[Decimal, int, str]

MAX_DECIMAL_PLACES = 10

# wide enough that sums and products of currency-scale amounts stay exact
_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class MonetaryCurrency:
    """A currency code together with its minor-unit count."""

    code: str
    decimal_places: int = 2

    def __post_init__(self) -> None:
        if not 0 <= self.decimal_places <= MAX_DECIMAL_PLACES:
            raise InvalidAmountError(
                f"decimal_places must be between 0 and {MAX_DECIMAL_PLACES}; got {self.decimal_places}"
            )

    @property
    def quantum(self) -> Decimal:
        return Decimal(1).scaleb(-self.decimal_places, _CONTEXT)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        value = str(value)
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise InvalidAmountError(f"Invalid amount: {value}") from exc


def _quantize(amount: Decimal, currency: MonetaryCurrency, rounding: str) -> Decimal:
    try:
        return amount.quantize(currency.quantum, rounding=rounding, context=_CONTEXT)
    except InvalidOperation as exc:
        raise InvalidAmountError(
            f"{amount} cannot be held with {currency.decimal_places} decimal places"
        ) from exc


@dataclass(frozen=True)
class Money:
    currency: MonetaryCurrency
    amount: Decimal

    def __post_init__(self) -> None:
        amount = _to_decimal(self.amount)
        if amount.as_tuple().exponent != -self.currency.decimal_places:
            amount = _quantize(amount, self.currency, ROUND_HALF_EVEN)
        object.__setattr__(self, "amount", amount)

    @classmethod
    def of(cls, currency: MonetaryCurrency, value: Number, rounding: str = ROUND_HALF_EVEN) -> "Money":
        return cls(currency, _quantize(_to_decimal(value), currency, rounding))

    @classmethod
    def zero(cls, currency: MonetaryCurrency) -> "Money":
        return cls.of(currency, 0)

    def _check_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency.code} with {other.currency.code}"
            )

    def plus(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.currency, _CONTEXT.add(self.amount, other.amount))

    def minus(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.currency, _CONTEXT.subtract(self.amount, other.amount))

    def multiply_retain_scale(self, factor: Number, rounding: str = ROUND_HALF_EVEN) -> "Money":
        """Multiply by a unitless factor, rounding back to the currency scale."""
        return Money.of(self.currency, _CONTEXT.multiply(self.amount, _to_decimal(factor)), rounding)

    def divided_by(self, divisor: Number, rounding: str = ROUND_HALF_EVEN) -> "Money":
        divisor = _to_decimal(divisor)
        if divisor == 0:
            raise ZeroDivisionError("Cannot divide money by zero")
        return Money.of(self.currency, _CONTEXT.divide(self.amount, divisor), rounding)

    def abs(self) -> "Money":
        return Money(self.currency, self.amount.copy_abs())

    def negated(self) -> "Money":
        return Money(self.currency, self.amount.copy_negate())

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_greater_than_zero(self) -> bool:
        return self.amount > 0

    def is_less_than_zero(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return f"{self.currency.code} {self.amount}"
