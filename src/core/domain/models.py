"""Domain models (Pydantic v2).

These describe *what* the API returns, not *how* it is fetched. Every model
ignores unknown fields: the server may add attributes at any time and the
CLI only needs the ones it renders.

JSON output never goes through these models; it prints the server payload as
received. The models are used to normalise rows for table output.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

T = TypeVar("T")


class PageEnvelope(BaseModel, Generic[T]):
    """One page of a list endpoint.

    `next_cursor` is opaque: it is stored and sent back unchanged, never
    decoded. Its absence means there are no further pages.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: list[T] = Field(
        default_factory=list,
        description="Page items in server order.",
    )
    next_cursor: str | None = Field(
        default=None,
        alias="nextCursor",
        description="Cursor for the next page, if any.",
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ApiAmount(BaseModel):
    """Amount as the API sends it.

    The encoding depends on the field: decimal strings for balances and
    transfers, integer minor units for transactions and statements.
    """

    model_config = ConfigDict(extra="ignore")

    amount: str | int | float | None = None
    currency: str | None = None


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _null_to_empty_list(value: Any) -> Any:
    return [] if value is None else value


class CashAccount(_ApiModel):
    id: str
    account_name: str | None = None
    account_number: str | None = None
    routing_number: str | None = None
    current_balance: ApiAmount | None = None
    available_balance: ApiAmount | None = None
    created_at: str | None = None
    account_type: str | None = None
    status: str | None = None


class CardAccount(_ApiModel):
    id: str
    account_name: str | None = None
    current_balance: ApiAmount | None = None
    limit: ApiAmount | None = None
    created_at: str | None = None
    account_type: str | None = None
    status: str | None = None


class Merchant(_ApiModel):
    raw_descriptor: str | None = None
    mcc: str | None = None
    country: str | None = None


class Transaction(_ApiModel):
    id: str
    description: str | None = None
    amount: ApiAmount | None = None
    initiated_at_date: str | None = None
    posted_at_date: str | None = None
    type: str | None = None
    card_id: str | None = None
    merchant: Merchant | None = None
    transfer_id: str | None = None


class _IdRef(_ApiModel):
    id: str | None = None


class TransferSource(_ApiModel):
    cash_account: _IdRef | None = None


class TransferRecipient(_ApiModel):
    payment_counterparty: _IdRef | None = None


class Transfer(_ApiModel):
    id: str
    amount: ApiAmount | None = None
    status: str | None = None
    created_at: str | None = None
    idempotency_key: str | None = None
    from_account: TransferSource | None = None
    recipient: TransferRecipient | None = None

    @property
    def from_account_id(self) -> str | None:
        if self.from_account and self.from_account.cash_account:
            return self.from_account.cash_account.id
        return None

    @property
    def counterparty_id(self) -> str | None:
        if self.recipient and self.recipient.payment_counterparty:
            return self.recipient.payment_counterparty.id
        return None


class PaymentAccountDetails(_ApiModel):
    type: str | None = None
    payment_instrument_id: str | None = None
    routing_number: str | None = None
    account_number: str | None = None
    account_type: str | None = None
    account_class: str | None = None
    beneficiary_name: str | None = None


class PaymentAccount(_ApiModel):
    details: PaymentAccountDetails = Field(default_factory=PaymentAccountDetails)

    @field_validator("details", mode="before")
    @classmethod
    def default_null_details(cls, value: Any) -> Any:
        return {} if value is None else value


class Vendor(_ApiModel):
    id: str
    company_name: str | None = None
    email: str | None = None
    phone: str | None = None
    payment_accounts: list[PaymentAccount] = Field(default_factory=list)

    @field_validator("payment_accounts", mode="before")
    @classmethod
    def default_null_payment_accounts(cls, value: Any) -> Any:
        return _null_to_empty_list(value)


class Webhook(_ApiModel):
    id: str
    url: str | None = None
    status: str | None = None
    event_types: list[str] = Field(default_factory=list)
    created_at: str | None = None

    @field_validator("event_types", mode="before")
    @classmethod
    def default_null_event_types(cls, value: Any) -> Any:
        return _null_to_empty_list(value)


class User(_ApiModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    department: str | None = None
    manager_id: str | None = None
    status: str | None = None


class Cardholder(_ApiModel):
    user_id: str | None = None


class Card(_ApiModel):
    id: str
    card_name: str | None = None
    status: str | None = None
    expiration_month: str | int | None = None
    expiration_year: str | int | None = None
    last_four: str | None = None
    last_4: str | None = None
    cardholder: Cardholder | None = None

    @property
    def last_digits(self) -> str | None:
        return self.last_four or self.last_4

    @property
    def expiration(self) -> str | None:
        if not self.expiration_month or not self.expiration_year:
            return None
        return f"{str(self.expiration_month).zfill(2)}/{self.expiration_year}"


class ApiEvent(_ApiModel):
    id: str
    event_type: str | None = None
    occurred_at: str | None = None
    webhook_id: str | None = None
    payload: Any | None = None


class StatementPeriod(_ApiModel):
    start_date: str | None = None
    end_date: str | None = None


class Statement(_ApiModel):
    """Card account statement. Balances are integer minor units."""

    id: str
    statement_status: str | None = None
    period_start_date: str | None = None
    period_end_date: str | None = None
    period: StatementPeriod | None = None
    start_balance: ApiAmount | None = None
    end_balance: ApiAmount | None = None
    due_date: str | None = None
    download_url: str | None = None
    created_at: str | None = None

    @property
    def period_start(self) -> str | None:
        return self.period_start_date or (self.period.start_date if self.period else None)

    @property
    def period_end(self) -> str | None:
        return self.period_end_date or (self.period.end_date if self.period else None)


class CompanyLocation(_ApiModel):
    address_line_1: str | None = None
    address_line_2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class Company(_ApiModel):
    id: str | None = None
    legal_name: str | None = None
    dba_name: str | None = None
    tax_id: str | None = None
    status: str | None = None
    locations: list[CompanyLocation] = Field(default_factory=list)
    location: CompanyLocation | None = None

    @field_validator("locations", mode="before")
    @classmethod
    def default_null_locations(cls, value: Any) -> Any:
        return _null_to_empty_list(value)

    @property
    def primary_location(self) -> CompanyLocation | None:
        if self.location is not None:
            return self.location
        return self.locations[0] if self.locations else None


__all__ = [
    "ApiAmount",
    "ApiEvent",
    "Card",
    "CardAccount",
    "CashAccount",
    "Company",
    "PageEnvelope",
    "PaymentAccount",
    "PaymentAccountDetails",
    "Statement",
    "StatementPeriod",
    "Transaction",
    "Transfer",
    "User",
    "Vendor",
    "Webhook",
]
