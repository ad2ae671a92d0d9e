from __future__ import annotations

import datetime

import pytest

from conftest import CHECKING_LINK, FakeTransport, sample
from portal_sync.banks.fortuneo import sync
from portal_sync.errors import AuthenticationFailure, BalanceParseFailure
from portal_sync.store import (
    ACCOUNTS_DOCTYPE,
    BALANCE_HISTORIES_DOCTYPE,
    OPERATIONS_DOCTYPE,
    JsonFileStore,
)


NOW = datetime.datetime(2026, 10, 19, 8, 0, tzinfo=datetime.timezone.utc)


@pytest.mark.asyncio
async def test_full_run_persists_accounts_balances_and_operations(transport, store, credentials):
    report = await sync(transport, store, credentials, now=NOW)

    assert report.skipped_accounts == ["50000000005"]
    assert report.accounts.created == 4
    assert report.balance_histories.created == 4
    assert report.operations.created == 5

    accounts = {a["number"]: a for a in store.all(ACCOUNTS_DOCTYPE)}
    assert accounts["10000000001"]["balance"] == pytest.approx(1234.56)
    assert accounts["40000000004"]["type"] == "Savings"

    checking_id = accounts["10000000001"]["_id"]
    ops = sorted(
        (o for o in store.all(OPERATIONS_DOCTYPE) if o["account"] == checking_id),
        key=lambda o: o["vendorId"],
    )
    assert [(o["vendorId"], o["label"]) for o in ops] == [
        ("10000000001_2019-12-31_0", "COTISATION CARTE"),
        ("10000000001_2020-01-03_0", "CARTE 01/01 SUPERMARCHE"),
        ("10000000001_2020-01-03_1", "VIR SEPA SALAIRE"),
        ("10000000001_2020-01-03_2", "PRLV SEPA EDF"),
    ]
    assert all(s.closed for s in transport.sessions)


@pytest.mark.asyncio
async def test_second_run_on_same_data_writes_nothing(transport, store, credentials):
    await sync(transport, store, credentials, now=NOW)
    report = await sync(transport, store, credentials, now=NOW + datetime.timedelta(minutes=5))

    assert report.accounts.created == report.accounts.updated == 0
    assert report.balance_histories.created == report.balance_histories.updated == 0
    assert report.operations.created == report.operations.updated == 0
    assert len(store.all(OPERATIONS_DOCTYPE)) == 5
    assert len(store.all(BALANCE_HISTORIES_DOCTYPE)) == 4


@pytest.mark.asyncio
async def test_changed_balance_updates_one_account(transport, store, credentials):
    await sync(transport, store, credentials, now=NOW)
    transport.pages[CHECKING_LINK] = sample("checking.html").replace("1 234,56", "1 000,00")

    report = await sync(transport, store, credentials, now=NOW)

    assert report.accounts.updated == 1
    assert report.accounts.unchanged == 3
    assert report.operations.created == 0


@pytest.mark.asyncio
async def test_rejected_login_aborts_before_extraction(store, credentials):
    transport = FakeTransport(home="login_failed.html")

    with pytest.raises(AuthenticationFailure):
        await sync(transport, store, credentials, now=NOW)

    assert transport.calls == []
    assert store.all(ACCOUNTS_DOCTYPE) == []


@pytest.mark.asyncio
async def test_balance_parse_failure_aborts_the_run(transport, store, credentials):
    transport.pages[CHECKING_LINK] = sample("balance_missing.html")

    with pytest.raises(BalanceParseFailure):
        await sync(transport, store, credentials, now=NOW)

    assert store.all(ACCOUNTS_DOCTYPE) == []
    assert transport.sessions[0].closed


@pytest.mark.asyncio
async def test_reopened_json_store_keeps_runs_idempotent(transport, credentials, tmp_path):
    path = tmp_path / "portal_sync.json"
    await sync(transport, JsonFileStore(path), credentials, now=NOW)

    store = JsonFileStore(path)
    report = await sync(transport, store, credentials, now=NOW + datetime.timedelta(minutes=5))

    assert report.accounts.created == report.accounts.updated == 0
    assert report.balance_histories.created == report.balance_histories.updated == 0
    assert report.balance_histories.unchanged == 4
    assert report.operations.created == report.operations.updated == 0
    assert report.operations.unchanged == 5
    assert len(store.all(OPERATIONS_DOCTYPE)) == 5
