"""Money normalisation.

Amounts arrive in two encodings depending on the source field: decimal
strings (`"125.5"`) and integer minor units (`12550`). Resource commands
convert both into `Money` so the renderer only ever sees one display
convention: `-1,234.50 USD`.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, Field

from core.domain.models import ApiAmount
from core.exceptions import DecodeError

DEFAULT_CURRENCY = "USD"
_CENTS = Decimal("0.01")


class Money(BaseModel):
    amount: Decimal = Field(..., description="Amount in major units.")
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=1)

    @classmethod
    def from_decimal_string(cls, value: str | int | float, currency: str | None = None) -> "Money":
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise DecodeError(f"Invalid decimal amount: {value!r}") from exc
        return cls(amount=amount, currency=currency or DEFAULT_CURRENCY)

    @classmethod
    def from_minor_units(cls, value: int | str | float, currency: str | None = None) -> "Money":
        try:
            minor = Decimal(str(value))
        except InvalidOperation as exc:
            raise DecodeError(f"Invalid minor-unit amount: {value!r}") from exc
        return cls(amount=minor / 100, currency=currency or DEFAULT_CURRENCY)

    def display(self) -> str:
        quantized = self.amount.quantize(_CENTS)
        sign = "-" if quantized < 0 else ""
        return f"{sign}{abs(quantized):,.2f} {self.currency.upper()}"


def money_from_decimal(value: ApiAmount | None) -> Money | None:
    if value is None or value.amount is None:
        return None
    return Money.from_decimal_string(value.amount, value.currency)


def money_from_minor_units(value: ApiAmount | None) -> Money | None:
    if value is None or value.amount is None:
        return None
    return Money.from_minor_units(value.amount, value.currency)


def format_money(money: Money | None, *, placeholder: str = "-") -> str:
    return money.display() if money is not None else placeholder
