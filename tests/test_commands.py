from __future__ import annotations

import asyncio
import json
import stat

import httpx
import pytest

from cli.commands import (
    accounts,
    cards,
    categories,
    doctor,
    events,
    organization,
    recipients,
    session,
    statements,
    transactions,
    transfer,
    users,
    version,
    webhooks,
)
from cli.rendering import OutputMode
from conftest import output_of
from core.config import get_user_env_file
from core.exceptions import (
    ApiError,
    FlagValueError,
    MissingArgumentError,
    UnknownSubcommandError,
    UnsupportedOperationError,
    UsageError,
)

CASH_ACCOUNT = {
    "id": "cash_1",
    "account_name": "Operating",
    "account_number": "000123",
    "routing_number": "121000358",
    "current_balance": {"amount": "1234.5", "currency": "USD"},
    "available_balance": {"amount": "1000", "currency": "USD"},
}
CARD_ACCOUNT = {"id": "card_1", "current_balance": {"amount": "-20.25", "currency": "USD"}}


async def run(handler, context, *args: str) -> None:
    try:
        await handler(context, list(args))
    finally:
        await context.aclose()


# -- accounts -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_accounts_default_lists_cash_before_card_even_when_card_answers_first(api, make_context, console) -> None:
    async def slow_cash(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"items": [CASH_ACCOUNT]})

    api.add_handler("GET", "/v2/accounts/cash", slow_cash)
    api.add("GET", "/v2/accounts/card", body={"card_accounts": [CARD_ACCOUNT]})

    await run(accounts.handle, make_context())

    text = output_of(console)
    assert text.index("cash_1") < text.index("card_1")
    assert "1,000.00 USD" in text
    assert "-20.25 USD" in text


@pytest.mark.asyncio
async def test_accounts_combined_json_has_one_envelope_per_source(api, make_context, console) -> None:
    api.add("GET", "/v2/accounts/cash", body={"items": [CASH_ACCOUNT], "next_cursor": "next-cash"})
    api.add("GET", "/v2/accounts/card", body={"items": []})

    await run(accounts.handle, make_context(OutputMode.JSON), "list")

    assert json.loads(output_of(console)) == {
        "cash": {"items": [CASH_ACCOUNT], "nextCursor": "next-cash"},
        "card": {"items": [], "nextCursor": None},
    }


@pytest.mark.asyncio
async def test_accounts_cursor_requires_a_single_type(api, make_context) -> None:
    with pytest.raises(UsageError):
        await run(accounts.handle, make_context(), "list", "--cursor", "abc123")
    assert api.requests == []


@pytest.mark.asyncio
async def test_accounts_single_type_forwards_cursor(api, make_context) -> None:
    api.add("GET", "/v2/accounts/card", body={"items": [CARD_ACCOUNT]})
    await run(accounts.handle, make_context(), "--type", "card", "--cursor", "abc123")
    assert api.requests[0].url.params["cursor"] == "abc123"


@pytest.mark.asyncio
async def test_accounts_get_falls_back_to_card_on_404(api, make_context, console) -> None:
    api.add("GET", "/v2/accounts/cash/card_1", status=404, body={"error": "not_found"})
    api.add("GET", "/v2/accounts/card/card_1", body=CARD_ACCOUNT)

    await run(accounts.handle, make_context(), "get", "card_1")

    assert [r.url.path for r in api.requests] == ["/v2/accounts/cash/card_1", "/v2/accounts/card/card_1"]
    assert "Account Details" in output_of(console)


@pytest.mark.asyncio
async def test_accounts_get_does_not_fall_back_on_other_errors(api, make_context) -> None:
    api.add("GET", "/v2/accounts/cash/x", status=500, body={"error": "internal"})
    with pytest.raises(ApiError):
        await run(accounts.handle, make_context(), "get", "x")
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_accounts_unknown_subcommand(api, make_context) -> None:
    with pytest.raises(UnknownSubcommandError):
        await run(accounts.handle, make_context(), "delete", "x")


# -- transactions ---------------------------------------------------------------


@pytest.mark.asyncio
async def test_transactions_cursor_is_sent_unchanged(api, make_context) -> None:
    api.add("GET", "/v2/transactions/cash/acc_1", body={"items": []})
    await run(transactions.handle, make_context(), "acc_1", "--cursor", "abc123", "--limit", "10")

    params = api.requests[0].url.params
    assert params["cursor"] == "abc123"
    assert params["limit"] == "10"


@pytest.mark.asyncio
async def test_transactions_amounts_are_minor_units(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v2/transactions/card/primary",
        body={
            "items": [
                {
                    "id": "tx_1",
                    "description": "fallback",
                    "amount": {"amount": -123450, "currency": "USD"},
                    "posted_at_date": "2024-03-01T10:00:00Z",
                    "merchant": {"raw_descriptor": "COFFEE SHOP"},
                }
            ],
            "next_cursor": "n2",
        },
    )

    await run(transactions.handle, make_context(), "--type", "card", "--start", "2024-01-01")

    text = output_of(console)
    assert "-1,234.50 USD" in text
    assert "COFFEE SHOP" in text
    assert "2024-03-01" in text
    assert "Run with: --cursor n2" in text
    assert api.requests[0].url.params["posted_at_start"] == "2024-01-01"


@pytest.mark.asyncio
async def test_transactions_malformed_limit_fails_before_any_request(api, make_context) -> None:
    with pytest.raises(FlagValueError):
        await run(transactions.handle, make_context(), "acc_1", "--limit", "0")
    assert api.requests == []


@pytest.mark.asyncio
async def test_cash_transactions_need_an_account(api, make_context) -> None:
    with pytest.raises(MissingArgumentError):
        await run(transactions.handle, make_context(), "--limit", "5")
    assert api.requests == []


@pytest.mark.asyncio
async def test_transactions_cannot_send_money(api, make_context) -> None:
    with pytest.raises(UnsupportedOperationError):
        await run(transactions.handle, make_context(), "send")


# -- transfer -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_two_transfers_get_distinct_idempotency_keys(api, make_context) -> None:
    api.add("POST", "/v1/transfers", body={"transfer": {"id": "tr_1", "status": "PROCESSING"}})
    args = ("--from", "cash_1", "--to", "cp_1", "--amount", "125.5")

    await run(transfer.handle, make_context(), *args)
    await run(transfer.handle, make_context(), *args)

    keys = [r.headers["Idempotency-Key"] for r in api.requests]
    assert len(set(keys)) == 2
    for index, key in enumerate(keys):
        assert api.json_body(index)["idempotency_key"] == key


@pytest.mark.asyncio
async def test_transfer_body_shape(api, make_context, console) -> None:
    api.add("POST", "/v1/transfers", body={"id": "tr_1", "amount": {"amount": "125.50", "currency": "EUR"}})

    await run(
        transfer.handle,
        make_context(),
        "create",
        "--from", "cash_1",
        "--to", "cp_1",
        "--amount", "125.5",
        "--currency", "eur",
        "--idempotency-key", "key-42",
    )

    assert api.requests[0].headers["Idempotency-Key"] == "key-42"
    assert api.json_body() == {
        "from_account": {"cash_account": {"id": "cash_1"}},
        "recipient": {"payment_counterparty": {"id": "cp_1"}},
        "amount": {"amount": "125.50", "currency": "EUR"},
        "idempotency_key": "key-42",
    }
    assert "Transfer Created" in output_of(console)
    assert "125.50 EUR" in output_of(console)


@pytest.mark.asyncio
async def test_transfer_requires_from(api, make_context) -> None:
    with pytest.raises(MissingArgumentError) as info:
        await run(transfer.handle, make_context(), "--to", "cp_1", "--amount", "1")
    assert str(info.value) == "Missing required --from"
    assert api.requests == []


@pytest.mark.asyncio
async def test_transfer_get_unwraps_item(api, make_context, console) -> None:
    api.add("GET", "/v1/transfers/tr_9", body={"item": {"id": "tr_9", "status": "PROCESSED"}})
    await run(transfer.handle, make_context(OutputMode.JSON), "get", "tr_9")
    assert json.loads(output_of(console)) == {"id": "tr_9", "status": "PROCESSED"}


# -- recipients -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_partial_ach_details_are_rejected(api, make_context) -> None:
    with pytest.raises(MissingArgumentError):
        await run(recipients.handle, make_context(), "create", "--name", "Acme", "--routing", "121000358")
    assert api.requests == []


@pytest.mark.asyncio
async def test_recipient_create_builds_ach_payment_account(api, make_context) -> None:
    api.add("POST", "/v1/vendors", body={"id": "v_1", "company_name": "Acme"})

    await run(
        recipients.handle,
        make_context(),
        "create",
        "--name", "Acme",
        "--email", "ap@acme.test",
        "--routing", "121000358",
        "--account", "987654321",
        "--account-type", "checking",
        "--account-class", "business",
    )

    assert api.json_body() == {
        "company_name": "Acme",
        "email": "ap@acme.test",
        "payment_accounts": [
            {
                "details": {
                    "type": "ACH",
                    "routing_number": "121000358",
                    "account_number": "987654321",
                    "account_type": "CHECKING",
                    "account_class": "BUSINESS",
                }
            }
        ],
    }
    assert api.requests[0].headers["Idempotency-Key"]


@pytest.mark.asyncio
async def test_recipient_delete_confirms(api, make_context, console) -> None:
    api.add("DELETE", "/v1/vendors/v_1", status=204)
    await run(recipients.handle, make_context(), "delete", "v_1")
    assert output_of(console) == "Vendor v_1 deleted.\n"


@pytest.mark.asyncio
async def test_recipient_list_tolerates_null_payment_accounts(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v1/vendors",
        body={
            "items": [
                {"id": "v_1", "company_name": "Acme", "payment_accounts": None},
                {"id": "v_2", "company_name": "Globex", "payment_accounts": [{"details": None}]},
            ]
        },
    )
    await run(recipients.handle, make_context())

    text = output_of(console)
    assert "v_1" in text
    assert "Globex" in text


# -- webhooks -------------------------------------------------------------------


@pytest.mark.asyncio
async def test_webhook_update_preserves_unspecified_fields(api, make_context) -> None:
    api.add(
        "GET",
        "/v1/webhooks/wh_1",
        body={"webhook": {"id": "wh_1", "url": "https://old.test", "event_types": ["TRANSFER_PROCESSED"]}},
    )
    api.add("PUT", "/v1/webhooks/wh_1", body={"id": "wh_1", "url": "https://new.test"})

    await run(webhooks.handle, make_context(), "update", "wh_1", "--url", "https://new.test")

    assert [r.method for r in api.requests] == ["GET", "PUT"]
    assert api.json_body() == {"url": "https://new.test", "event_types": ["TRANSFER_PROCESSED"]}


@pytest.mark.asyncio
async def test_webhook_create_requires_url(api, make_context) -> None:
    with pytest.raises(MissingArgumentError):
        await run(webhooks.handle, make_context(), "create", "--events", "A,B")
    assert api.requests == []


@pytest.mark.asyncio
async def test_webhook_delete_json(api, make_context, console) -> None:
    api.add("DELETE", "/v1/webhooks/wh_1", status=204)
    await run(webhooks.handle, make_context(OutputMode.JSON), "delete", "wh_1")
    assert json.loads(output_of(console)) == {"id": "wh_1", "deleted": True}


@pytest.mark.asyncio
async def test_webhook_list_tolerates_null_event_types(api, make_context, console) -> None:
    api.add("GET", "/v1/webhooks", body={"items": [{"id": "wh_1", "url": "https://x.test", "event_types": None}]})
    await run(webhooks.handle, make_context())

    lines = output_of(console).splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("wh_1")
    assert "https://x.test" in lines[1]


@pytest.mark.asyncio
async def test_webhook_update_with_null_event_types_sends_empty_list(api, make_context) -> None:
    api.add("GET", "/v1/webhooks/wh_1", body={"id": "wh_1", "url": "https://old.test", "event_types": None})
    api.add("PUT", "/v1/webhooks/wh_1", body={"id": "wh_1"})

    await run(webhooks.handle, make_context(), "update", "wh_1")

    assert api.json_body() == {"url": "https://old.test", "event_types": []}


# -- users / organization -------------------------------------------------------


@pytest.mark.asyncio
async def test_empty_user_list_prints_empty_message(api, make_context, console) -> None:
    api.add("GET", "/v2/users", body={"items": []})
    await run(users.handle, make_context())
    assert output_of(console) == "No users found.\n"


@pytest.mark.asyncio
async def test_user_list_json_round_trips_items_and_cursor(api, make_context, console) -> None:
    items = [{"id": "u_1", "first_name": "Ada", "custom": {"x": 1}}]
    api.add("GET", "/v2/users", body={"users": items, "next_cursor": "c2"})
    await run(users.handle, make_context(OutputMode.JSON), "list")
    assert json.loads(output_of(console)) == {"items": items, "nextCursor": "c2"}


@pytest.mark.asyncio
async def test_organization_shows_primary_location(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v2/company",
        body={
            "company": {
                "id": "co_1",
                "legal_name": "Acme Inc",
                "locations": [{"address_line_1": "1 Main St", "city": "SF", "state": "CA", "postal_code": "94105"}],
            }
        },
    )
    await run(organization.handle, make_context())

    text = output_of(console)
    assert "Legal Name: Acme Inc" in text
    assert "SF, CA 94105" in text


@pytest.mark.asyncio
async def test_organization_without_locations(api, make_context, console) -> None:
    api.add("GET", "/v2/company", body={"id": "co_1", "legal_name": "Acme Inc", "locations": None})
    await run(organization.handle, make_context())

    text = output_of(console)
    assert "Legal Name: Acme Inc" in text
    assert "Address" not in text


# -- cards / events -------------------------------------------------------------


@pytest.mark.asyncio
async def test_card_list_shows_last_digits_and_padded_expiry(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v2/cards",
        body={
            "items": [
                {
                    "id": "card_1",
                    "card_name": "Travel",
                    "last_4": "4242",
                    "expiration_month": 3,
                    "expiration_year": 2027,
                    "status": "ACTIVE",
                    "cardholder": {"user_id": "u_1"},
                },
                {"id": "card_2", "last_four": "1111", "last_4": "2222"},
            ]
        },
    )

    await run(cards.handle, make_context(), "--user-id", "u_1", "--limit", "5")

    text = output_of(console)
    assert "4242" in text
    assert "03/2027" in text
    assert "1111" in text
    assert "2222" not in text
    params = api.requests[0].url.params
    assert params["user_id"] == "u_1"
    assert params["limit"] == "5"


@pytest.mark.asyncio
async def test_empty_card_list(api, make_context, console) -> None:
    api.add("GET", "/v2/cards", body={"cards": []})
    await run(cards.handle, make_context(), "list")
    assert output_of(console) == "No cards found.\n"


@pytest.mark.asyncio
async def test_card_get_unwraps_card(api, make_context, console) -> None:
    api.add("GET", "/v2/cards/card_1", body={"card": {"id": "card_1", "expiration_month": "11", "expiration_year": "2030"}})
    await run(cards.handle, make_context(), "get", "card_1")

    text = output_of(console)
    assert "ID: card_1" in text
    assert "Expires: 11/2030" in text


@pytest.mark.asyncio
async def test_event_list_forwards_filters(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v1/events",
        body={"items": [{"id": "ev_1", "event_type": "TRANSFER_PROCESSED", "occurred_at": "2024-05-01T08:30:00Z"}]},
    )

    await run(events.handle, make_context(), "list", "--event-type", "TRANSFER_PROCESSED", "--after-date", "2024-05-01")

    text = output_of(console)
    assert "TRANSFER_PROCESSED" in text
    assert "2024-05-01 08:30:00" in text
    params = api.requests[0].url.params
    assert params["event_type"] == "TRANSFER_PROCESSED"
    assert params["after_date"] == "2024-05-01"
    assert "before_date" not in params


@pytest.mark.asyncio
async def test_empty_event_list(api, make_context, console) -> None:
    api.add("GET", "/v1/events", body={"events": []})
    await run(events.handle, make_context())
    assert output_of(console) == "No events found.\n"


@pytest.mark.asyncio
async def test_event_get_unwraps_item(api, make_context, console) -> None:
    api.add("GET", "/v1/events/ev_1", body={"item": {"id": "ev_1", "event_type": "CARD_CREATED", "payload": {"a": 1}}})
    await run(events.handle, make_context(), "get", "ev_1")

    text = output_of(console)
    assert "ID: ev_1" in text
    assert "Type: CARD_CREATED" in text
    assert '"a": 1' in text


@pytest.mark.asyncio
async def test_event_get_prefers_event_wrapper(api, make_context, console) -> None:
    api.add("GET", "/v1/events/ev_1", body={"event": {"id": "ev_1"}, "item": {"id": "ev_other"}})
    await run(events.handle, make_context(OutputMode.JSON), "get", "ev_1")
    assert json.loads(output_of(console)) == {"id": "ev_1"}


# -- statements / categories ----------------------------------------------------


@pytest.mark.asyncio
async def test_primary_statements_show_minor_unit_balances(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v2/accounts/card/primary/statements",
        body={
            "statements": [
                {
                    "id": "st_1",
                    "period": {"start_date": "2024-01-01T00:00:00Z", "end_date": "2024-01-31T00:00:00Z"},
                    "start_balance": {"amount": 123456, "currency": "USD"},
                    "end_balance": {"amount": -500, "currency": "USD"},
                }
            ],
            "next_cursor": "s2",
        },
    )

    await run(statements.handle, make_context())

    text = output_of(console)
    assert "2024-01-01" in text
    assert "2024-01-31" in text
    assert "1,234.56 USD" in text
    assert "-5.00 USD" in text
    assert "Run with: --cursor s2" in text


@pytest.mark.asyncio
async def test_additional_statements_need_an_account_id(api, make_context) -> None:
    with pytest.raises(MissingArgumentError, match="--account-id is required"):
        await run(statements.handle, make_context(), "--scope", "additional")
    assert api.requests == []


@pytest.mark.asyncio
async def test_additional_statements_use_the_account_path(api, make_context, console) -> None:
    api.add("GET", "/v2/accounts/card/additional/ca_9/statements", body={"items": []})
    await run(statements.handle, make_context(), "list", "--scope", "additional", "--account-id", "ca_9", "--cursor", "c1")

    assert output_of(console) == "No statements found.\n"
    assert api.requests[0].url.params["cursor"] == "c1"


@pytest.mark.asyncio
async def test_statement_scope_must_be_known(api, make_context) -> None:
    with pytest.raises(FlagValueError):
        await run(statements.handle, make_context(), "--scope", "secondary")
    assert api.requests == []


@pytest.mark.asyncio
async def test_statement_get_reads_account_statement_wrapper(api, make_context, console) -> None:
    api.add(
        "GET",
        "/v2/accounts/card/additional/ca_9/statements/st_1",
        body={
            "account_statement": {"id": "st_1", "due_date": "2024-02-25", "download_url": "https://files.test/st_1.pdf"},
            "item": {"id": "st_other"},
        },
    )

    await run(statements.handle, make_context(), "get", "st_1", "--scope", "additional", "--account-id", "ca_9")

    text = output_of(console)
    assert "ID: st_1" in text
    assert "Due Date: 2024-02-25" in text
    assert "Download: https://files.test/st_1.pdf" in text


@pytest.mark.asyncio
async def test_categories_are_not_available(api, make_context) -> None:
    with pytest.raises(UnsupportedOperationError, match="categories endpoint") as excinfo:
        await run(categories.handle, make_context())
    assert "developer.brex.com" in excinfo.value.hint
    assert api.requests == []


# -- session / version / doctor -------------------------------------------------


@pytest.mark.asyncio
async def test_login_stores_token_with_private_permissions(api, make_context) -> None:
    await run(session.login, make_context(), "--token", "tok_123", "--base-url", "https://sandbox.test")

    env_file = get_user_env_file()
    content = env_file.read_text(encoding="utf-8")
    assert "BREX_TOKEN=tok_123" in content
    assert "BREX_API_BASE_URL=https://sandbox.test" in content
    assert stat.S_IMODE(env_file.stat().st_mode) == 0o600
    assert api.requests == []


@pytest.mark.asyncio
async def test_login_prompts_when_token_flag_is_absent(make_context, monkeypatch) -> None:
    monkeypatch.setattr(session, "_prompt_token", lambda: "prompted")
    await run(session.login, make_context())
    assert "BREX_TOKEN=prompted" in get_user_env_file().read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_logout_removes_token(make_context, console) -> None:
    await run(session.login, make_context(), "--token", "tok_123")
    await run(session.logout, make_context())

    assert "BREX_TOKEN" not in get_user_env_file().read_text(encoding="utf-8")
    assert output_of(console).splitlines()[-1] == "Logged out. Stored token removed."


@pytest.mark.asyncio
async def test_version_line(make_context, console) -> None:
    await run(version.handle, make_context())
    assert output_of(console).startswith("brex-cli v")


@pytest.mark.asyncio
async def test_doctor_skips_connectivity_without_token(api, make_context, console) -> None:
    await run(doctor.handle, make_context(OutputMode.JSON, token=None))

    checks = {c["check"]: c for c in json.loads(output_of(console))["checks"]}
    assert checks["API token"]["status"] == "MISSING"
    assert checks["API connectivity"]["status"] == "SKIP"
    assert api.requests == []


@pytest.mark.asyncio
async def test_doctor_reports_api_failure(api, make_context, console) -> None:
    api.add("GET", "/v2/company", status=401, body={"error": "unauthorized", "message": "Bad token"})
    await run(doctor.handle, make_context(OutputMode.JSON))

    checks = {c["check"]: c for c in json.loads(output_of(console))["checks"]}
    assert checks["API connectivity"]["status"] == "FAIL"
    assert "Bad token" in checks["API connectivity"]["details"]
